"""Management command to report uploads left behind by expired URLs."""

import logging
from typing import Any, Final

from django.core.management.base import BaseCommand
from django.utils import timezone

from server.apps.uploads.logic.service import get_upload_service

_DEFAULT_LIMIT: Final = 1000

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """List stale uploads and expired sessions without changing them."""

    help = 'Report uploads and sessions still uploading after expiry'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--limit',
            type=int,
            default=_DEFAULT_LIMIT,
            help=f'Max rows to list per section (default: {_DEFAULT_LIMIT})',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the report.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        limit = options['limit']
        service = get_upload_service()
        now = timezone.now()

        stale_uploads = service.find_stale_uploads(now)
        stale_count = stale_uploads.count()
        self.stdout.write(
            f'Uploads still uploading after URL expiry: {stale_count}',
        )
        for record in stale_uploads.select_related('uploaded_by')[:limit]:
            self.stdout.write(
                f'  {record.id} {record.category} {record.storage_key} '
                f'(user: {record.uploaded_by.pk}, '
                f'expired: {record.presigned_expires_at})',
            )

        expired_sessions = service.find_expired_sessions(now)
        session_count = expired_sessions.count()
        self.stdout.write(
            f'Sessions still uploading after expiry: {session_count}',
        )
        for session in expired_sessions[:limit]:
            self.stdout.write(
                f'  {session.session_token[:8]} {session.category} '
                f'{session.processed_files}/{session.total_files} '
                f'(expired: {session.expires_at})',
            )

        if stale_count or session_count:
            logger.warning(
                'Stale uploads: %d, expired sessions: %d',
                stale_count,
                session_count,
            )
        self.stdout.write(
            self.style.SUCCESS(
                f'Reported {stale_count} uploads and {session_count} sessions',
            ),
        )
