"""Fail every active mission whose deadline has passed."""
from django.core.management.base import BaseCommand

from missions.services import sweep_expired_missions


class Command(BaseCommand):
    help = "Fail expired active missions and apply their impact (safe to run repeatedly)"

    def handle(self, *args, **options):
        failed = sweep_expired_missions()
        self.stdout.write(self.style.SUCCESS(f"{failed} expired mission(s) failed."))
