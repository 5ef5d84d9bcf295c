from django.core.management.base import BaseCommand, CommandError

from apps.core.exceptions import AppError
from apps.integrations.sync import LegacySyncService


class Command(BaseCommand):
    help = 'Import upcoming confirmed bookings from the legacy booking system.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--booking',
            help='Sync a single booking by legacy id or booking number',
        )

    def handle(self, *args, **options):
        service = LegacySyncService()
        try:
            if options['booking']:
                outcome = service.sync_booking(options['booking'])
                appointment = outcome['appointment']
                self.stdout.write(self.style.SUCCESS(
                    f'Booking {appointment.booking_number} synced '
                    f'(patient created: {outcome["patient_created"]}, '
                    f'appointment created: {outcome["appointment_created"]})'
                ))
                return
            result = service.sync_all()
        except AppError as e:
            raise CommandError(e.message) from e

        self.stdout.write(
            f'Bookings: {result.total_bookings}, new patients: {result.new_patients}, '
            f'new appointments: {result.new_appointments}, updated: {result.updated_appointments}'
        )
        for error in result.errors:
            self.stdout.write(self.style.WARNING(error))
        if result.success:
            self.stdout.write(self.style.SUCCESS('Legacy booking sync completed'))
        else:
            self.stdout.write(self.style.WARNING(f'Legacy booking sync finished with {len(result.errors)} errors'))
