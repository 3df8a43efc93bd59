# formulagen/main.py
import logging
import uuid
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, field_validator

from . import __version__
from .config import Settings
from .llm_helper import ModelClient, create_model_client
from .logging_config import setup_logging
from .page import PAGE_HTML
from .runner import CopyUnavailable, FormulaSession

logger = logging.getLogger(__name__)

SESSION_COOKIE = 'formulagen_session'


class FormulaRequest(BaseModel):
    description: str

    @field_validator('description')
    @classmethod
    def description_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError('description must not be blank')
        return value


class SessionRegistry:
    """In-memory sessions keyed by cookie, oldest evicted first once full."""

    def __init__(self, client: ModelClient, settings: Settings):
        self.client = client
        self.settings = settings
        self._sessions: 'OrderedDict[str, FormulaSession]' = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: Optional[str]) -> Optional[FormulaSession]:
        session = self._sessions.get(session_id) if session_id else None
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def create(self) -> tuple:
        session_id = uuid.uuid4().hex
        session = FormulaSession(self.client, copy_reset_seconds=self.settings.copy_reset_seconds)
        self._sessions[session_id] = session

        while len(self._sessions) > self.settings.max_sessions:
            evicted_id, evicted = self._sessions.popitem(last=False)
            # Busy sessions still get dropped; their in-flight call just resolves unseen
            evicted.close()
            logger.info("Evicted session %s", evicted_id[:8])
        return session_id, session

    def close(self, session_id: Optional[str]) -> bool:
        session = self._sessions.pop(session_id, None) if session_id else None
        if session is None:
            return False
        session.close()
        return True

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()


def create_app(settings: Optional[Settings] = None, client: Optional[ModelClient] = None) -> FastAPI:
    """Build the web app; the model client is created once here unless one is given."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    client = client or create_model_client(settings)
    registry = SessionRegistry(client, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        registry.close_all()

    app = FastAPI(title='Sheets Formula Generator', version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=['*'],
        allow_headers=['*']
    )
    app.state.settings = settings
    app.state.sessions = registry

    async def find_session(request: Request) -> Optional[FormulaSession]:
        return registry.get(request.cookies.get(SESSION_COOKIE))

    async def get_or_create_session(request: Request, response: Response) -> FormulaSession:
        session = registry.get(request.cookies.get(SESSION_COOKIE))
        if session is None:
            session_id, session = registry.create()
            response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite='lax')
        return session

    @app.get('/', response_class=HTMLResponse)
    async def index():
        """The formula generator page."""
        return PAGE_HTML

    @app.get('/api')
    async def api_info():
        """API information"""
        return {
            'service': 'Sheets Formula Generator',
            'status': 'running',
            'version': __version__,
            'endpoints': {
                'health': '/health',
                'state': 'GET /api/state',
                'formula': 'POST /api/formula',
                'copy': 'POST /api/copy',
                'close': 'POST /api/session/close',
                'docs': '/docs'
            }
        }

    @app.get('/health')
    async def health_check():
        """Health check endpoint."""
        return {'status': 'healthy'}

    @app.get('/api/state')
    async def get_state(session: Optional[FormulaSession] = Depends(find_session)):
        """Current state; unknown visitors get an idle state without a session."""
        if session is None:
            return FormulaSession(client).snapshot()
        return session.snapshot()

    @app.post('/api/formula')
    async def generate_formula(req: FormulaRequest, session: FormulaSession = Depends(get_or_create_session)):
        """
        Generate a formula for the description and return the settled state.
        Rejected with 409 while another request of this session is in flight.
        """
        if not await session.submit(req.description):
            raise HTTPException(
                status_code=409,
                detail={'message': 'A formula is already being generated', 'state': session.snapshot()}
            )
        return session.snapshot()

    @app.post('/api/copy')
    async def copy_formula(session: Optional[FormulaSession] = Depends(find_session)):
        """Mark the formula as copied once the page has written it to the clipboard."""
        if session is None:
            raise HTTPException(status_code=409, detail='There is no formula to copy')
        try:
            formula = session.copy()
        except CopyUnavailable as e:
            raise HTTPException(status_code=409, detail=str(e))
        return {
            'formula': formula,
            'copied': True,
            'reset_after_ms': int(session.copy_reset_seconds * 1000),
            'state': session.snapshot(),
        }

    @app.post('/api/session/close')
    async def close_session(request: Request, response: Response):
        closed = registry.close(request.cookies.get(SESSION_COOKIE))
        response.delete_cookie(SESSION_COOKIE)
        return {'closed': closed}

    return app


app = create_app()

if __name__ == '__main__':
    import uvicorn
    uvicorn.run('formulagen.main:app', host='0.0.0.0', port=8000, reload=True)
