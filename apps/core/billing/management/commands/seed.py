import random
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from faker import Faker

from apps.core.billing.models import FeeSettings
from apps.core.students.models import CLASS_OPTIONS, Student


class Command(BaseCommand):
    help = 'Seeds the database with a demo roster and fee settings.'

    def add_arguments(self, parser):
        parser.add_argument('--per-class', type=int, default=10, help='Students to create per class.')
        parser.add_argument('--spp', type=Decimal, default=Decimal('50000'))
        parser.add_argument('--catering', type=Decimal, default=Decimal('20000'))
        parser.add_argument('--billing-day', type=int, default=10)

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Seeding database...')

        fake = Faker('id_ID')

        fee_settings = FeeSettings.get_current() or FeeSettings()
        fee_settings.spp_amount = options['spp']
        fee_settings.catering_amount = options['catering']
        fee_settings.billing_day = options['billing_day']
        fee_settings.full_clean()
        fee_settings.save()
        self.stdout.write(self.style.SUCCESS(f'Fee settings saved: {fee_settings}'))

        created_count = 0
        for student_class in CLASS_OPTIONS:
            for _ in range(options['per_class']):
                student, created = Student.objects.get_or_create(
                    nis=str(fake.unique.random_number(digits=8, fix_len=True)),
                    defaults={
                        'name': fake.name(),
                        'student_class': student_class,
                        'parent_name': fake.name(),
                        'phone': fake.phone_number()[:20],
                        'address': fake.address(),
                        'is_active': random.random() > 0.05,
                    },
                )
                if created:
                    created_count += 1

        self.stdout.write(self.style.SUCCESS(f'Created {created_count} student(s).'))
        self.stdout.write(self.style.SUCCESS('Database seeding complete!'))
