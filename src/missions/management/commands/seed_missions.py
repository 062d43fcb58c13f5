"""Give every owner a starting set of time-bound missions."""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from missions.services import seed_time_bound_missions


class Command(BaseCommand):
    help = "Top each active owner up to a target number of active missions from the standard catalogue"

    def add_arguments(self, parser):
        parser.add_argument("--target", type=int, default=10, help="Active missions to aim for per owner")
        parser.add_argument("--owner", help="Only seed this owner email")

    def handle(self, *args, **options):
        users = get_user_model().objects.filter(is_active=True).order_by("email")
        if options["owner"]:
            users = users.filter(email=options["owner"])

        total = 0
        for user in users.iterator():
            created = seed_time_bound_missions(user, target=options["target"])
            total += len(created)
            if created:
                self.stdout.write(f"  {user.email}: {len(created)} mission(s)")

        self.stdout.write(self.style.SUCCESS(f"Seed complete: {total} mission(s) created."))
