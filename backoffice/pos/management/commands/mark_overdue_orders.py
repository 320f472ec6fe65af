from django.core.management.base import BaseCommand

from backoffice.pos.services import mark_overdue_orders


class Command(BaseCommand):
    help = 'Moves stock and live orders nobody has acted on to pending (run every 15 minutes from cron)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List overdue orders without updating them',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No changes will be saved."))

        bill_numbers = mark_overdue_orders(dry_run=dry_run)
        if not bill_numbers:
            self.stdout.write("No overdue orders found")
            return

        for bill_no in bill_numbers:
            self.stdout.write(f"  - {bill_no}")
        if dry_run:
            self.stdout.write(self.style.WARNING(f"Found {len(bill_numbers)} overdue orders"))
        else:
            self.stdout.write(self.style.SUCCESS(f"Marked {len(bill_numbers)} overdue orders as pending"))
