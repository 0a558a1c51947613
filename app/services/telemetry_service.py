import logging
from datetime import datetime
from app.core.firebase import get_firestore_client

logger = logging.getLogger(__name__)


class TelemetryService:
    def __init__(self):
        # None when Firebase is not initialized; events are then only logged
        self.db = get_firestore_client()
        self.events_collection = 'revuverse_events'
        self.errors_collection = 'revuverse_errors'
        self.logger = logging.getLogger(__name__)

    def log_event(
        self,
        event_name: str,
        user_id: str = None,
        parameters: dict = None,
    ):
        """Record a product event in Firestore."""
        logger.debug(f"log_event: Entry - {event_name}, user: {user_id}")

        if self.db is None:
            return

        try:
            event_data = {
                'event_name': event_name,
                'user_id': user_id,
                'parameters': parameters or {},
                'timestamp': datetime.utcnow()
            }
            self.db.collection(self.events_collection).add(event_data)
        except Exception as e:
            # Telemetry failures should not break main functionality
            logger.error(f"log_event: Failure - {e}")

    def log_error(
        self,
        error: str,
        action: str,
        user_id: str = None,
        parameters: dict = None,
    ):
        """Record an operation error in Firestore."""
        if self.db is None:
            return

        try:
            error_data = {
                'action': action,
                'user_id': user_id,
                'error_message': error,
                'parameters': parameters or {},
                'timestamp': datetime.utcnow()
            }
            self.db.collection(self.errors_collection).add(error_data)
        except Exception as e:
            logger.error(f"log_error: Failure - {e}")

    def log_success(
        self,
        action: str,
        user_id: str = None,
        parameters: dict = None
    ):
        self.log_event(
            event_name=f'{action}_success',
            user_id=user_id,
            parameters={
                'status': 'success',
                **(parameters or {})
            }
        )

    def log_failure(
        self,
        action: str,
        error: str,
        user_id: str = None,
        parameters: dict = None
    ):
        """
        Log a failed action both as a product event (failure rate)
        and as an error record (debugging).
        """
        self.log_event(
            event_name=f'{action}_failure',
            user_id=user_id,
            parameters={
                'status': 'failure',
                'error': error,
                **(parameters or {})
            }
        )
        self.log_error(error=error, action=action, user_id=user_id, parameters=parameters)
