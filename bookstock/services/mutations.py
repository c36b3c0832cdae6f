# bookstock/services/mutations.py
import logging
from typing import Any, Dict

from ..exceptions import PersistenceError
from .notifications import Notifier
from .store import LibraryStore

logger = logging.getLogger(__name__)


class MutationPipeline:
    """Applies a change locally, persists it, and undoes it if the write is rejected"""

    def __init__(self, store: LibraryStore, persistence, notifier: Notifier):
        self.store = store
        self.persistence = persistence
        self.notifier = notifier

    async def apply(
        self,
        book_id: int,
        updates: Dict[str, Any],
        failure_message: str = "Failed to save the change",
        notify: bool = True
    ) -> bool:
        """
        Apply field updates to one book.

        Args:
            book_id: The book to change
            updates: Field values to set
            failure_message: Message shown when the write is rejected
            notify: Whether a rejected write is reported to the user

        Returns:
            True when the change was persisted
        """
        current = self.store.get(book_id)
        if current is None:
            logger.warning(f"Book {book_id} not found, skipping update of {', '.join(updates)}")
            return False

        updated = current.model_copy(update=updates)
        self.store.put(updated)

        try:
            await self.persistence.save(updated)
        except PersistenceError as e:
            logger.error(f"Rolling back book {book_id}: {e}")
            if book_id in self.store:
                self.store.put(current)
            if notify:
                self.notifier.error(failure_message)
            return False

        return True
