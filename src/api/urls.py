"""Main API URL router for /api/v1/."""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from api.v1 import views as v1_views

router = DefaultRouter()
router.register(r'products', v1_views.ProductViewSet, basename='product')
router.register(r'missions', v1_views.MissionViewSet, basename='mission')
router.register(r'budget', v1_views.BudgetViewSet, basename='budget')
router.register(r'inventory', v1_views.InventoryViewSet, basename='inventory')


app_name = 'api'
urlpatterns = [
    path('', include(router.urls)),
    path('auth/me/', v1_views.MeView.as_view(), name='auth-me'),
    path('metrics/', v1_views.BusinessMetricsView.as_view(), name='metrics'),
]
