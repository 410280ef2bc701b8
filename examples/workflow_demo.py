"""
Async Workflow Demo

Runs a Dify workflow app with AsyncDifyClient and prints node progress as the
workflow executes, then runs it again in blocking mode.

Set DIFY_API_KEY to a workflow app key (and optionally DIFY_BASE_URL).
"""

import asyncio

from dotenv import load_dotenv

from difyflow import (
    AsyncDifyClient, WorkflowsRunRequest,
    NodeStartedEvent, NodeFinishedEvent, WorkflowFinishedEvent,
)

load_dotenv()

USER = "workflow-demo"


def progress(event):
    """Projector turning node and workflow events into progress lines"""
    if isinstance(event, NodeStartedEvent):
        return f"-> {event.data.title} ({event.data.node_type})"
    if isinstance(event, NodeFinishedEvent):
        return f"<- {event.data.node_id}: {event.data.status.value} in {event.data.elapsed_time or 0:.2f}s"
    if isinstance(event, WorkflowFinishedEvent):
        return f"== workflow {event.data.status.value}, {event.data.total_steps} steps, outputs={event.data.outputs}"
    return None


async def main():
    async with AsyncDifyClient() as client:
        api = client.api()
        request = WorkflowsRunRequest(inputs={"query": "Summarize the Dify API"}, user=USER)

        print("=== Streaming ===\n")
        for line in await api.workflows_run_stream(request, progress):
            print(line)

        print("\n=== Blocking ===\n")
        response = await api.workflows_run(request)
        print(f"{response.workflow_run_id}: {response.data.status.value}")
        print(response.data.outputs)


if __name__ == "__main__":
    asyncio.run(main())
