"""
Enrollment, recognition and verification of faces.

The coordinator validates input, resolves users and templates through the
store and delegates embedding work to the configured strategy. It does
not log and recovers from nothing: every failure is raised as one of the
errors in `errors` and answered at the HTTP boundary.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from errors import (
    BadInputError,
    NoFaceDetectedError,
    TemplateNotFoundError,
    UserNotFoundError,
)
from face_utils import FacialRecognitionStrategy
from models import FacialTemplate
from repository import TemplateStore


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EnrollmentResult:
    username: str
    template: FacialTemplate
    created: bool


class FacialRecognitionService:
    def __init__(
        self,
        store: TemplateStore,
        strategy: FacialRecognitionStrategy,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.strategy = strategy
        self.clock = clock

    def _extract(self, image_data: bytes) -> bytes:
        embedding = self.strategy.extract_embedding(image_data)
        if not embedding:
            raise NoFaceDetectedError()
        return embedding

    def enroll(
        self, username: Optional[str], image_data: Optional[bytes], source_name: Optional[str] = None
    ) -> EnrollmentResult:
        """
        Create the user's template, or replace it if one exists.

        The user row is created before extraction, so a username stays
        registered even when no face is found in the image.
        """
        if not image_data:
            raise BadInputError("Please select an image file to enroll.")
        username = (username or "").strip()
        if not username:
            raise BadInputError("Username cannot be empty.")

        user = self.store.find_user_by_username(username)
        if user is None:
            user = self.store.create_user(username)

        embedding = self._extract(image_data)

        template, created = self.store.upsert_template(
            user, embedding, source_name, self.clock()
        )
        return EnrollmentResult(username=username, template=template, created=created)

    def recognize(self, image_data: Optional[bytes]) -> Optional[str]:
        """
        Return the username of the first stored template matching the
        image, or None. Templates are scanned in store order and there is
        no ranking: the first positive match wins.
        """
        if not image_data:
            raise BadInputError("Please select an image file to recognize.")

        query = self._extract(image_data)

        for stored in self.store.list_templates():
            if self.strategy.is_match(query, stored.facial_embedding):
                return stored.user.username
        return None

    def verify(self, username: Optional[str], image_data: Optional[bytes]) -> bool:
        """
        Whether the image matches the given user's template. A mismatch is
        a normal result, not an error.
        """
        if not image_data:
            raise BadInputError("Please select an image file for verification.")
        username = (username or "").strip()
        if not username:
            raise BadInputError("Username cannot be empty for verification.")

        user = self.store.find_user_by_username(username)
        if user is None:
            raise UserNotFoundError(username)

        template = self.store.find_template_by_user(user)
        if template is None:
            raise TemplateNotFoundError(username)

        query = self._extract(image_data)
        return self.strategy.is_match(query, template.facial_embedding)
