"""
Streaming API Demo

Demonstrates the streaming surface of difyflow against a Dify chat app:
- Folding a stream through a projector (chat_messages_stream)
- Iterating raw events as they arrive (chat_messages_events)
- Stopping a running task by its task_id

Set DIFY_API_KEY (and optionally DIFY_BASE_URL) in the environment or a .env file.
"""

from dotenv import load_dotenv

from difyflow import (
    DifyClient, ChatMessagesRequest,
    MessageEvent, MessageEndEvent, AgentThoughtEvent, ErrorEvent, ServiceError,
    answer_chunks,
)

load_dotenv()

USER = "streaming-demo"


# Example 1: Fold the stream into a list of answer chunks
def demo_projector(client: DifyClient):
    """Collect answer text with the built-in answer_chunks projector"""
    print("=== DEMO 1: Projector ===\n")

    chunks = client.api().chat_messages_stream(
        ChatMessagesRequest(query="Explain server-sent events in two sentences.", user=USER),
        answer_chunks,
    )
    print("".join(chunks))
    print(f"\n[{len(chunks)} chunks]\n")


# Example 2: React to each event as it arrives
def demo_events(client: DifyClient):
    """Print text as it streams, plus agent thoughts and the final usage"""
    print("=== DEMO 2: Raw events ===\n")

    request = ChatMessagesRequest(query="What is 25 * 4 + 10?", user=USER)
    for event in client.api().chat_messages_events(request):
        if isinstance(event, MessageEvent):
            print(event.answer, end="", flush=True)

        elif isinstance(event, AgentThoughtEvent) and event.tool:
            print(f"\n[Calling {event.tool}: {event.tool_input}]")

        elif isinstance(event, ErrorEvent):
            print(f"\n[Error {event.code}: {event.message}]")

        elif isinstance(event, MessageEndEvent):
            usage = event.metadata.get("usage", {})
            print(f"\n[Message complete: {usage.get('total_tokens', '?')} tokens]")

    print()


# Example 3: Stop a task once its first chunk has arrived
def demo_stop(client: DifyClient):
    """Stop generation after the first chunk using the task_id carried by every event"""
    print("=== DEMO 3: Stop ===\n")

    api = client.api()
    events = api.chat_messages_events(ChatMessagesRequest(query="Write a long poem about rivers.", user=USER))
    try:
        for event in events:
            if isinstance(event, MessageEvent):
                print(event.answer)
                result = api.chat_messages_stop(event.task_id, USER)
                print(f"[stop: {result.result}]")
                break
    except ServiceError as e:
        print(f"[service error: {e}]")
    finally:
        events.close()


if __name__ == "__main__":
    with DifyClient() as client:
        demo_projector(client)
        demo_events(client)
        demo_stop(client)
