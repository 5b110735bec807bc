"""
Preview generation job - runs once per paid session.

Single-flight per phone: a second trigger while a job is running gets an
"already generating" reply instead of a second generation. The job marks
preview_sent only after the image was delivered; on any failure the session
stays PREVIEW_PENDING and a new photo from the customer retries it.
"""

import asyncio
import logging

from figurine_bot.core.exceptions import PreviewGenerationError
from figurine_bot.services.guards import PreviewInFlight
from figurine_bot.services.messaging.outbound import Messenger
from figurine_bot.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class PreviewService:
    def __init__(
        self,
        session_store: SessionStore,
        messenger: Messenger,
        image_generator,
        in_flight: PreviewInFlight,
        step_delay_ms: int = 1200,
    ):
        self.session_store = session_store
        self.messenger = messenger
        self.image_generator = image_generator
        self.in_flight = in_flight
        self.step_delay_ms = step_delay_ms

    async def _send_progress(self, phone: str) -> None:
        for step in self.messenger.composer.render_all("preview_steps"):
            await self.messenger.send_text(phone, step)
            if self.step_delay_ms:
                await asyncio.sleep(self.step_delay_ms / 1000)

    async def run(self, phone: str) -> bool:
        """
        Generate and deliver the preview for phone's paid session.

        Returns:
            True if a preview was delivered by this call
        """
        session = self.session_store.get(phone)
        if not session.preview_paid or session.preview_sent:
            logger.info(
                f"Preview for {phone} not due "
                f"(paid={session.preview_paid}, sent={session.preview_sent})"
            )
            return False
        if not session.last_image_url or session.mini_style is None:
            logger.warning(f"Paid session {phone} has no photo/style - asking for the photo again")
            await self.messenger.send_reply(phone, "preview_photo_missing")
            return False

        if not self.in_flight.try_acquire(phone):
            await self.messenger.send_reply(phone, "preview_already_generating")
            return False

        try:
            await self._send_progress(phone)
            image = await self.image_generator.generate_preview(
                session.last_image_url, session.mini_style
            )
            delivered = await self.messenger.send_image(
                phone, image, caption=self.messenger.render("preview_ready", phone)
            )
            if not delivered:
                logger.error(f"Preview for {phone} generated but not delivered")
                return False

            # Re-read: the customer may have sent messages while we were generating
            self.session_store.save(phone, self.session_store.get(phone).update(preview_sent=True))
            logger.info(f"Preview delivered to {phone}")
            return True
        except PreviewGenerationError as e:
            logger.error(f"Preview generation failed for {phone}: {e}", exc_info=True)
            await self.messenger.send_reply(phone, "preview_failed")
            return False
        except Exception as e:
            logger.error(f"Unexpected error generating preview for {phone}: {e}", exc_info=True)
            await self.messenger.send_reply(phone, "preview_failed")
            return False
        finally:
            self.in_flight.release(phone)
