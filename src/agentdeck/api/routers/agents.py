"""Agents router: CRUD, reorder, and execute.

Endpoints:
    GET    /agents                 List agents by order
    GET    /agents/{agent_id}      Get one agent
    POST   /agents                 Create an agent
    PATCH  /agents/reorder         Apply a new ordering
    PATCH  /agents/{agent_id}      Replace an agent's fields
    DELETE /agents/{agent_id}      Delete an agent
    POST   /agents/{agent_id}/execute   Start a background execution
"""

from fastapi import APIRouter, Response

from agentdeck.api.deps import Agents, Executions
from agentdeck.api.schemas import ReorderRequest
from agentdeck.domain.models import Agent, AgentCreate, Execution

router = APIRouter(prefix="/agents")


@router.get("", response_model=list[Agent])
async def list_agents(agents: Agents):
    return await agents.list_agents()


@router.post("", response_model=Agent, status_code=201)
async def create_agent(body: AgentCreate, agents: Agents):
    return await agents.create_agent(body)


# Declared before /{agent_id} so "reorder" is not taken as an id
@router.patch("/reorder", status_code=204, response_class=Response)
async def reorder_agents(body: ReorderRequest, agents: Agents):
    """Move agents to new positions atomically."""
    await agents.reorder_agents(body.agents)
    return Response(status_code=204)


@router.get("/{agent_id}", response_model=Agent)
async def get_agent(agent_id: str, agents: Agents):
    return await agents.get_agent(agent_id)


@router.patch("/{agent_id}", response_model=Agent)
async def update_agent(agent_id: str, body: AgentCreate, agents: Agents):
    return await agents.update_agent(agent_id, body)


@router.delete("/{agent_id}", status_code=204, response_class=Response)
async def delete_agent(agent_id: str, agents: Agents):
    await agents.delete_agent(agent_id)
    return Response(status_code=204)


@router.post("/{agent_id}/execute", response_model=Execution, status_code=202)
async def execute_agent(agent_id: str, agents: Agents, executions: Executions):
    """Start executing an agent's tasks.

    Responds as soon as the execution record exists; poll
    GET /executions/{id} for the outcome.

    Raises:
        404: Unknown agent.
        400: Agent has no non-blank task.
        429: Concurrency limit enforced and reached.
    """
    agent = await agents.get_agent(agent_id)
    return await executions.start_execution(agent)
