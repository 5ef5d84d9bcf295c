"""
Read-only access to the legacy booking system (MySQL table ``bookings``).

Columns: id, booking_number, first_name, last_name, email, phone,
appointment_date, appointment_time, service_type, status, notes, created_at
"""
import logging
import time
from contextlib import contextmanager

import pymysql
from django.conf import settings
from pymysql.cursors import DictCursor

logger = logging.getLogger(__name__)

BOOKING_COLUMNS = (
    'id, booking_number, first_name, last_name, email, phone, '
    'appointment_date, appointment_time, service_type, status, notes, created_at'
)


def is_configured():
    return bool(settings.LEGACY_MYSQL['DATABASE'])


class LegacyBookingRepository:
    """
    Thin query layer over the legacy bookings table.

    Every call opens its own short-lived connection; raises pymysql.MySQLError
    when the database is unreachable.
    """

    def __init__(self, config=None):
        self.config = config or settings.LEGACY_MYSQL

    @contextmanager
    def cursor(self):
        connection = pymysql.connect(
            host=self.config['HOST'],
            port=self.config['PORT'],
            user=self.config['USER'],
            password=self.config['PASSWORD'],
            database=self.config['DATABASE'],
            connect_timeout=self.config.get('CONNECT_TIMEOUT', 10),
            charset='utf8mb4',
            cursorclass=DictCursor,
        )
        try:
            with connection.cursor() as cursor:
                yield cursor
        finally:
            connection.close()

    def ping(self):
        with self.cursor() as cursor:
            cursor.execute('SELECT COUNT(*) AS count FROM bookings LIMIT 1')
            cursor.fetchone()
        return True

    def fetch_upcoming_confirmed(self):
        with self.cursor() as cursor:
            cursor.execute(
                f"SELECT {BOOKING_COLUMNS} FROM bookings "
                "WHERE status = 'confirmed' AND appointment_date >= CURDATE() "
                "ORDER BY appointment_date ASC, appointment_time ASC"
            )
            return list(cursor.fetchall())

    def get_booking(self, id_or_number):
        with self.cursor() as cursor:
            cursor.execute(
                f"SELECT {BOOKING_COLUMNS} FROM bookings WHERE id = %s OR booking_number = %s LIMIT 1",
                (id_or_number, id_or_number),
            )
            return cursor.fetchone()

    def count_bookings(self):
        """Upcoming confirmed bookings, the population that sync imports."""
        with self.cursor() as cursor:
            cursor.execute(
                "SELECT COUNT(*) AS count FROM bookings "
                "WHERE status = 'confirmed' AND appointment_date >= CURDATE()"
            )
            return cursor.fetchone()['count']


def check_legacy_health(repository=None):
    if not is_configured() and repository is None:
        return {'status': 'not_configured'}
    started = time.monotonic()
    try:
        (repository or LegacyBookingRepository()).ping()
    except pymysql.MySQLError as e:
        logger.error(
            'Legacy booking database health check failed',
            extra={'event': 'health_check_failed', 'check': 'legacy_bookings', 'error': str(e)},
        )
        return {'status': 'unhealthy', 'error': str(e)}
    return {
        'status': 'healthy',
        'latency_ms': round((time.monotonic() - started) * 1000, 2),
    }
