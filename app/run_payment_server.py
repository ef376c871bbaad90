# app/run_payment_server.py
import asyncio, signal
import contextlib
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import uvicorn

from payments.app.payment_api import build_payment_api
from payments.config import settings_from_cfg
from payments.http_api import build_app
from utils import logger, load_cfg


async def main():
    cfg = load_cfg()
    settings = settings_from_cfg(cfg)

    api = build_payment_api(settings, log=logger)
    app = build_app(api)
    server = uvicorn.Server(
        uvicorn.Config(app, host=settings.host,
                            port=settings.port,
                            loop="asyncio",
                            lifespan="off",
                            timeout_keep_alive=10,
                            log_config=None,
                            access_log=False)
    )

    http_task = asyncio.create_task(server.serve(), name="http")
    logger.info(f"listening on {settings.host}:{settings.port}")
    stop_event = asyncio.Event()

    def _graceful(*_):
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _graceful)
        except NotImplementedError:
            pass  # Windows

    await stop_event.wait()
    server.should_exit = True
    with contextlib.suppress(asyncio.CancelledError):
        await http_task
    await api.close()

if __name__ == "__main__":
    asyncio.run(main())
