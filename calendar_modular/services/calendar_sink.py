# File: calendar_modular/services/calendar_sink.py
"""
Push exported occurrences to a Google Calendar account.
"""

import datetime
from typing import Iterable, List, Optional

from googleapiclient.discovery import Resource

from calendar_modular.core.config_manager import Config
from calendar_modular.models import BlockKind, ConcreteOccurrence
from calendar_modular.utils.logger import setup_logger

logger = setup_logger(__name__)


class GoogleCalendarSink:
    """Writes occurrences into a Google Calendar as tagged events."""

    def __init__(
        self,
        calendar_service: Resource,
        calendar_id: Optional[str] = None,
        timezone: Optional[str] = None
    ):
        """
        Initialize the sink.

        Args:
            calendar_service: Authenticated Google Calendar API resource
            calendar_id: Target calendar (default: Config.GOOGLE_CALENDAR_ID)
            timezone: IANA timezone sent with each event (default: Config.TARGET_TIMEZONE)
        """
        self.service = calendar_service
        self.calendar_id = calendar_id or Config.GOOGLE_CALENDAR_ID
        self.timezone = timezone or Config.TARGET_TIMEZONE
        self.generator_id = Config.GENERATOR_ID

    def _event_body(self, occurrence: ConcreteOccurrence) -> dict:
        description_parts = []
        if occurrence.metadata.get('secondary_info'):
            description_parts.append(occurrence.metadata['secondary_info'])
        if occurrence.metadata.get('notes'):
            description_parts.append(occurrence.metadata['notes'])

        body = {
            'summary': occurrence.label,
            'description': '\n'.join(description_parts),
            'start': {
                'dateTime': occurrence.interval.start.isoformat(),
                'timeZone': self.timezone,
            },
            'end': {
                'dateTime': occurrence.interval.end.isoformat(),
                'timeZone': self.timezone,
            },
            'extendedProperties': {
                'private': {
                    'sourceId': self.generator_id,
                    'blockId': occurrence.source_id,
                    'isFixed': 'true' if occurrence.source_kind == BlockKind.FIXED else 'false',
                }
            },
        }
        if occurrence.metadata.get('location'):
            body['location'] = occurrence.metadata['location']
        return body

    def push(self, occurrences: Iterable[ConcreteOccurrence]) -> int:
        """
        Create one calendar event per occurrence in a single batch.

        Args:
            occurrences: Occurrences to deliver (typically the export shape)

        Returns:
            Number of events created
        """
        occurrences: List[ConcreteOccurrence] = list(occurrences)
        logger.info(f"Pushing {len(occurrences)} events to calendar '{self.calendar_id}'")

        if not occurrences:
            return 0

        batch = self.service.new_batch_http_request()
        created_count = 0

        def callback(request_id, response, exception):
            nonlocal created_count
            if exception is None:
                created_count += 1
            else:
                logger.error(f"Failed to create event {request_id}: {exception}")

        for occurrence in occurrences:
            batch.add(
                self.service.events().insert(
                    calendarId=self.calendar_id,
                    body=self._event_body(occurrence)
                ),
                callback=callback
            )

        try:
            batch.execute()
        except Exception as e:
            logger.error(f"Batch execution failed: {e}", exc_info=True)

        logger.info(f"Successfully created {created_count} events")
        return created_count

    def clear_previous_exports(
        self,
        time_min: datetime.datetime,
        time_max: datetime.datetime
    ) -> int:
        """
        Delete events this sink created earlier within [time_min, time_max).

        Returns:
            Number of events deleted
        """
        logger.info(f"Deleting previously pushed events between {time_min.isoformat()} and {time_max.isoformat()}")

        try:
            events_result = self.service.events().list(
                calendarId=self.calendar_id,
                timeMin=time_min.isoformat(),
                timeMax=time_max.isoformat(),
                singleEvents=True,
                privateExtendedProperty=f'sourceId={self.generator_id}'
            ).execute()
        except Exception as e:
            logger.error(f"Error listing pushed events: {e}", exc_info=True)
            return 0

        events_to_delete = events_result.get('items', [])
        if not events_to_delete:
            logger.info("No previously pushed events found")
            return 0

        batch = self.service.new_batch_http_request()
        deleted_count = 0

        def callback(request_id, response, exception):
            nonlocal deleted_count
            if exception is None:
                deleted_count += 1
            else:
                logger.warning(f"Failed to delete event {request_id}: {exception}")

        for event in events_to_delete:
            batch.add(
                self.service.events().delete(
                    calendarId=self.calendar_id,
                    eventId=event['id']
                ),
                callback=callback
            )

        try:
            batch.execute()
        except Exception as e:
            logger.error(f"Batch delete failed: {e}", exc_info=True)

        logger.info(f"Successfully deleted {deleted_count} events")
        return deleted_count
