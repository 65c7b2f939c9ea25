"""
HTTP surface: the streaming analysis endpoint and the cancel endpoint
"""

import json
import logging
import uuid
from typing import Optional

import aiohttp
from aiohttp import web

from .config import Settings
from .monitoring import ProgressEmitter
from .pipeline import AnalysisPipeline, AppContext, ResultHook

logger = logging.getLogger(__name__)

SETTINGS_KEY = web.AppKey("settings", Settings)
CONTEXT_KEY = web.AppKey("context", AppContext)

SSE_HEADERS = {
    'Content-Type': 'text/event-stream',
    'Cache-Control': 'no-cache',
    'Connection': 'keep-alive',
    'X-Accel-Buffering': 'no',
}


def has_bearer_token(request: web.Request) -> bool:
    header = request.headers.get('Authorization', '')
    scheme, _, credentials = header.partition(' ')
    return scheme.lower() == 'bearer' and bool(credentials.strip())


async def analyze_website(request: web.Request) -> web.StreamResponse:
    """GET /api/analyze-website: stream progress events, then one terminal event"""
    context = request.app[CONTEXT_KEY]

    params = dict(request.query)
    session_id = params.get('sessionId') or uuid.uuid4().hex
    params['sessionId'] = session_id
    params['demo'] = not has_bearer_token(request)

    response = web.StreamResponse(status=200, headers=SSE_HEADERS)
    await response.prepare(request)

    def on_disconnect():
        context.sessions.cancel(session_id)

    emitter = ProgressEmitter(response.write, on_disconnect=on_disconnect)
    await AnalysisPipeline(context).run(params, emitter)

    if not emitter.disconnected:
        try:
            await response.write_eof()
        except ConnectionError as e:
            logger.debug(f"Client went away before end of stream: {e}")
    return response


async def cancel_analysis(request: web.Request) -> web.Response:
    """POST /api/cancel-analysis with `{"sessionId": ...}`"""
    context = request.app[CONTEXT_KEY]

    try:
        body = await request.json()
    except json.JSONDecodeError:
        return web.json_response({'success': False, 'error': "Invalid JSON body"}, status=400)

    session_id = body.get('sessionId') if isinstance(body, dict) else None
    if not session_id:
        return web.json_response({'success': False, 'error': "Session ID required"}, status=400)

    if context.sessions.cancel(session_id):
        return web.json_response({'success': True, 'message': "Analysis cancelled"})
    return web.json_response({'success': False, 'error': "Session not found"}, status=404)


async def healthz(request: web.Request) -> web.Response:
    context = request.app[CONTEXT_KEY]
    return web.json_response({'status': 'ok', 'activeSessions': len(context.sessions)})


def create_app(settings: Optional[Settings] = None, on_result: Optional[ResultHook] = None) -> web.Application:
    """Build the application. The shared HTTP client lives for the app's lifetime."""
    app = web.Application()
    app[SETTINGS_KEY] = settings or Settings()

    async def app_context(app: web.Application):
        async with aiohttp.ClientSession() as http:
            app[CONTEXT_KEY] = AppContext.create(http, app[SETTINGS_KEY], on_result=on_result)
            logger.info("Analysis service started")
            yield
        logger.info("Analysis service stopped")

    app.cleanup_ctx.append(app_context)
    app.router.add_get('/api/analyze-website', analyze_website)
    app.router.add_post('/api/cancel-analysis', cancel_analysis)
    app.router.add_get('/healthz', healthz)
    return app
