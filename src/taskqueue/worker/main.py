import asyncio
import logging

from src.setup.app_config import configure_di
from src.setup.dispatcher_config import get_dispatcher_settings
from src.taskqueue.application.services import MessageTaskService
from src.taskqueue.worker.dispatcher import MessageDispatcher
from src.taskqueue.worker.sender import LoggingMessageSender


def main() -> None:
    settings = get_dispatcher_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    configure_di()
    dispatcher = MessageDispatcher(
        MessageTaskService(),
        LoggingMessageSender(),
        batch_size=settings.BATCH_SIZE,
        poll_interval_seconds=settings.POLL_INTERVAL_SECONDS,
    )
    asyncio.run(dispatcher.run_forever())


if __name__ == "__main__":
    main()
