"""FastAPI application exposing one editor session as a local JSON API."""

import secrets
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from .. import __version__
from ..core.codeblock import CodeBlock
from ..core.model import describe_block
from ..session import EditorSession


class ContentIn(BaseModel):
    content: str = ""


class BlockTextIn(BaseModel):
    text: str


class HtmlIn(BaseModel):
    html: str


def create_app(
    runtime: Any,
    token: str | None = None,
    enable_cors: bool = False,
    session: EditorSession | None = None,
) -> FastAPI:
    """
    Create FastAPI application around a single editor session.

    Args:
        runtime: Runtime instance used to build the session and convert HTML
        token: Bearer token for authentication (None to disable auth)
        enable_cors: Enable CORS middleware
        session: Existing session to serve (a new empty one by default)

    Returns:
        FastAPI application instance
    """
    editor = session or runtime.new_session()

    app = FastAPI(
        title="clickmark API",
        description="Local JSON API for a clickmark editor session",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )
    app.state.session = editor

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or credentials.credentials != token:
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    def document_state() -> dict[str, Any]:
        canonical = editor.get_canonical_text()
        return {
            "markdown": canonical,
            "html": runtime.renderer.render_html(canonical),
            "blocks": len(editor.document),
            "words": editor.word_count(),
            "can_undo": editor.history.can_undo,
            "can_redo": editor.history.can_redo,
            "placeholder": editor.placeholder_text(),
        }

    @app.get("/health")
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.get("/document")
    async def get_document(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Canonical Markdown and rendered HTML."""
        return document_state()

    @app.put("/document")
    async def put_document(body: ContentIn, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Load Markdown or HTML, replacing the document and its history."""
        editor.load(body.content)
        return document_state()

    @app.get("/blocks")
    async def get_blocks(auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        editor.get_canonical_text()
        return [describe_block(b) for b in editor.document]

    @app.put("/blocks/{index}")
    async def put_block(
        index: int, body: BlockTextIn, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        """Set the source of one text line, or the code of one code block."""
        if not 0 <= index < len(editor.document):
            raise HTTPException(status_code=404, detail=f"Block {index} not found")
        block = editor.document[index]
        if isinstance(block, CodeBlock):
            editor.code_input(block, body.text)
        else:
            editor.document.set_text(block, body.text)
        editor.sync()
        return describe_block(block)

    @app.post("/undo")
    async def undo(auth: None = Depends(verify_token)) -> dict[str, Any]:
        editor.undo()
        return document_state()

    @app.post("/redo")
    async def redo(auth: None = Depends(verify_token)) -> dict[str, Any]:
        editor.redo()
        return document_state()

    @app.post("/clear")
    async def clear(auth: None = Depends(verify_token)) -> dict[str, Any]:
        editor.clear()
        return document_state()

    @app.post("/convert")
    async def convert(body: HtmlIn, auth: None = Depends(verify_token)) -> dict[str, str]:
        """Convert HTML to canonical Markdown without touching the document."""
        return {"markdown": runtime.converter.to_markdown(body.html)}

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
