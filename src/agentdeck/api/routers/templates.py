"""Templates router: built-in agent templates."""

from fastapi import APIRouter, HTTPException

from agentdeck.api.deps import Templates
from agentdeck.domain.models import AgentTemplate

router = APIRouter(prefix="/templates")


@router.get("", response_model=list[AgentTemplate])
async def list_templates(templates: Templates, category: str | None = None):
    return templates.list_templates(category)


@router.get("/categories", response_model=list[str])
async def list_categories(templates: Templates):
    return templates.categories()


@router.get("/{template_id}", response_model=AgentTemplate)
async def get_template(template_id: str, templates: Templates):
    template = templates.get_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return template
