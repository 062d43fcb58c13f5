"""Verify that every wallet equals the replay of its transaction log."""
from django.core.management.base import BaseCommand, CommandError

from ledger.models import Wallet
from ledger.services import replay_balance


class Command(BaseCommand):
    help = "Replay each owner's transaction log and compare it with the stored wallet balance"

    def add_arguments(self, parser):
        parser.add_argument("--owner", help="Only check the wallet of this owner email")

    def handle(self, *args, **options):
        wallets = Wallet.objects.select_related("owner").order_by("created_at")
        if options["owner"]:
            wallets = wallets.filter(owner__email=options["owner"])

        mismatches = 0
        checked = 0
        for wallet in wallets.iterator():
            checked += 1
            replayed = replay_balance(wallet.owner)
            if replayed != wallet.balance:
                mismatches += 1
                self.stdout.write(self.style.ERROR(
                    f"{wallet.owner.email}: stored {wallet.balance}, replayed {replayed}"
                ))

        if mismatches:
            raise CommandError(f"{mismatches} of {checked} wallet(s) do not match their log.")
        self.stdout.write(self.style.SUCCESS(f"{checked} wallet(s) checked, all consistent."))
