"""Demo pages exercising the CSRF protector."""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from csrf_protector.logging_config import log_request
from csrf_protector.templates_config import templates

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Landing page with a comment form."""
    log_request(request)
    return templates.TemplateResponse(request, "index.html", {})


@router.post("/comments", response_class=HTMLResponse)
async def post_comment(request: Request):
    """Accept a comment. The body is empty if the CSRF check cleared it."""
    form = await request.form()
    comment = form.get("comment")
    return templates.TemplateResponse(request, "comment.html", {"comment": comment})


@router.get("/search", response_class=HTMLResponse)
async def search(request: Request):
    """Search page; the query string only survives with a valid token."""
    query = request.query_params.get("q")
    return templates.TemplateResponse(request, "search.html", {"query": query})


@router.get("/api/widgets")
async def list_widgets():
    """JSON endpoint that must never be rewritten."""
    return {"widgets": ["sprocket", "gear"]}


@router.get("/health")
def health_check():
    """Fast health check endpoint for load balancers and monitoring."""
    return {"status": "ok", "service": "csrf-protector"}
