"""Server-rendered pages streamed through the relay."""

from fastapi import APIRouter

from streamrelay.api.dependencies import RelayDep, RendererDep, SettingsDep
from streamrelay.config.settings import Settings
from streamrelay.core.logging import get_logger
from streamrelay.rendering import Renderable, TemplateRenderable, h
from streamrelay.server import RelayStreamingResponse


router = APIRouter()
logger = get_logger(__name__)


def index_page(settings: Settings) -> Renderable:
    """Content description of the index page."""
    template = settings.page.template
    if template is not None:
        return TemplateRenderable.from_file(
            template.parent, template.name, heading=settings.page.heading
        )
    return h("h1", settings.page.heading)


@router.get("/", response_model=None)
async def index(
    settings: SettingsDep, renderer: RendererDep, relay: RelayDep
) -> RelayStreamingResponse:
    """Stream the index page as HTML."""
    producer = renderer.render(index_page(settings))
    envelope = relay.relay(
        producer, headers={"content-type": settings.relay.media_type}
    )
    logger.debug("index_page_relayed", status_code=envelope.status_code)
    return RelayStreamingResponse(envelope)
