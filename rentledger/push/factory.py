import logging

from rentledger.push.base import PushSender
from rentledger.settings import settings

logger = logging.getLogger(__name__)


def get_push_sender() -> PushSender:
    backend = settings.push_backend

    if backend == "log":
        from rentledger.push.log import LogPushSender

        logger.info("Using push backend: log")
        return LogPushSender()

    if backend == "http":
        from rentledger.push.http import HttpPushSender

        logger.info("Using push backend: http url=%s", settings.push_url)
        return HttpPushSender(
            url=settings.push_url,
            api_key=settings.push_api_key,
            timeout=settings.push_timeout,
        )

    raise ValueError(f"Unsupported push backend: {backend}")
