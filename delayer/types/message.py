"""
Message type exchanged between producers and consumers.
"""

from dataclasses import dataclass
from uuid import uuid4

from delayer.constants import FIELD_BODY, FIELD_TOPIC


@dataclass(frozen=True)
class Message:
    """
    A delayed job payload.

    A message is valid only when id, topic and body are all non-empty.
    """

    id: str
    topic: str
    body: str

    @classmethod
    def create(cls, topic: str, body: str) -> "Message":
        """Create a message with a generated id."""
        return cls(id=uuid4().hex, topic=topic, body=body)

    @classmethod
    def from_record(cls, job_id: str, record: dict[str, str]) -> "Message | None":
        """
        Rebuild a message from a job record.

        Args:
            job_id: The job id the record belongs to.
            record: Hash fields read from the job record store.

        Returns:
            The message, or None if the record is missing a field.
        """
        topic = record.get(FIELD_TOPIC) or ""
        body = record.get(FIELD_BODY) or ""
        if not topic or not body:
            return None
        return cls(id=job_id, topic=topic, body=body)

    def valid(self) -> bool:
        """Check that every attribute is a non-empty string."""
        return all(
            isinstance(value, str) and value != ""
            for value in (self.id, self.topic, self.body)
        )

    def to_record(self) -> dict[str, str]:
        """Fields stored in the job record."""
        return {FIELD_TOPIC: self.topic, FIELD_BODY: self.body}
