#!/usr/bin/env python3
"""
HTTP server for compiling article URLs into a PDF
POST /api/compile returns the PDF, POST /api/email sends it
"""

import asyncio
import logging
import signal
from pathlib import Path
from typing import Optional

from aiohttp import web

from config import config
from document_service import ClippingsService
from utils.errors import ClippingsError, EmptyInputError
from utils.logging_config import clear_request_context, get_request_id, set_request_context, setup_logging

logger = logging.getLogger(__name__)

PUBLIC_DIR = Path(__file__).parent / 'public'
SKIPPED_HEADER = 'X-Clippings-Skipped'

SERVICE_KEY = web.AppKey('service', ClippingsService)


def _error(status: int, message: str) -> web.Response:
    return web.json_response({'error': message}, status=status)


async def _read_json(request: web.Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


@web.middleware
async def request_context_middleware(request: web.Request, handler):
    """Tag every request with an id for log correlation, reusing the caller's if sent"""
    set_request_context(request.headers.get('X-Request-Id'))
    request_id = get_request_id()
    try:
        response = await handler(request)
        response.headers['X-Request-Id'] = request_id
        return response
    finally:
        clear_request_context()


async def compile_handler(request: web.Request) -> web.Response:
    body = await _read_json(request)
    urls = body.get('urls') if isinstance(body.get('urls'), list) else []
    include_quiz = body.get('includeQuiz') is not False
    service = request.app[SERVICE_KEY]

    try:
        document = await service.compile(urls, include_quiz=include_quiz)
    except EmptyInputError as e:
        # Nothing submitted is the caller's fault; nothing extracted is upstream's
        return _error(502 if e.skipped else 400, str(e))
    except ClippingsError as e:
        logger.error(f"Compile failed: {e}", exc_info=True)
        return _error(500, str(e))
    except Exception as e:
        logger.error(f"Unexpected compile error: {e}", exc_info=True)
        return _error(500, str(e))

    headers = {
        'Content-Disposition': f'attachment; filename="{document.filename}"',
    }
    if document.skipped:
        headers[SKIPPED_HEADER] = ','.join(document.skipped)
    return web.Response(body=document.content, content_type='application/pdf', headers=headers)


async def email_handler(request: web.Request) -> web.Response:
    body = await _read_json(request)
    urls = body.get('urls') if isinstance(body.get('urls'), list) else []
    email = body.get('email') if isinstance(body.get('email'), str) else ''
    include_quiz = body.get('includeQuiz') is not False
    service = request.app[SERVICE_KEY]

    try:
        document = await service.email(urls, email=email, include_quiz=include_quiz)
    except EmptyInputError as e:
        return _error(502 if e.skipped else 400, str(e))
    except ValueError as e:
        return _error(400, str(e))
    except ClippingsError as e:
        logger.error(f"Email failed: {e}", exc_info=True)
        return _error(500, str(e))
    except Exception as e:
        logger.error(f"Unexpected email error: {e}", exc_info=True)
        return _error(500, str(e))

    return web.json_response({'status': 'sent', 'skipped': document.skipped})


async def index_handler(request: web.Request) -> web.FileResponse:
    return web.FileResponse(PUBLIC_DIR / 'index.html')


async def health_check(request: web.Request) -> web.Response:
    return web.json_response({
        'status': 'healthy',
        'service': 'clippings',
        'quiz_available': config.is_quiz_available(),
        'mail_configured': config.is_mail_configured(),
    })


def create_app(service: Optional[ClippingsService] = None) -> web.Application:
    """Application with API routes and, when present, the static front end"""
    app = web.Application(middlewares=[request_context_middleware], client_max_size=1024 ** 2)
    app[SERVICE_KEY] = service or ClippingsService()

    app.router.add_post('/api/compile', compile_handler)
    app.router.add_post('/api/email', email_handler)
    app.router.add_get('/health', health_check)

    if PUBLIC_DIR.is_dir():
        app.router.add_get('/', index_handler)
        app.router.add_static('/static/', PUBLIC_DIR)

    return app


async def main():
    setup_logging()
    app = create_app()
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, '0.0.0.0', config.PORT)
    await site.start()
    logger.info(f"Server running at http://localhost:{config.PORT}")

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            pass

    try:
        await shutdown_event.wait()
    finally:
        logger.info("Shutting down...")
        await runner.cleanup()
        logger.info("Shutdown complete")


def run():
    asyncio.run(main())


if __name__ == '__main__':
    run()
