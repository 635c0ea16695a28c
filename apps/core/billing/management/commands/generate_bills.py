from datetime import datetime

from django.core.management.base import BaseCommand, CommandError

from apps.core.billing.exceptions import StoreUnavailableError, ValidationError
from apps.core.billing.services import GENERATION_DONE, check_and_generate_bills


class Command(BaseCommand):
    help = 'Generate this month\'s SPP and catering bills once the billing day has been reached.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            type=lambda value: datetime.strptime(value, '%Y-%m-%d').date(),
            default=None,
            help='Evaluate the billing day against this date (YYYY-MM-DD) instead of today.',
        )

    def handle(self, *args, **options):
        try:
            result = check_and_generate_bills(now=options['date'])
        except ValidationError as exc:
            raise CommandError('; '.join(exc.messages))
        except StoreUnavailableError as exc:
            raise CommandError(f'{exc} Run the command again to resume.')

        if result['status'] == GENERATION_DONE:
            self.stdout.write(self.style.SUCCESS(
                f"Created {result['created']} bill(s) for {result['period_key']} ({result['count']} total)."
            ))
            return

        self.stdout.write(f"Skipped {result['period_key']}: {result['status']}.")
