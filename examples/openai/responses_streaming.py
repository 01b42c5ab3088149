import asyncio

import dotenv

from ai_client.openai import (
    OpenAIClient,
    OpenAIModel,
    OpenAIResponsesCreateRequest,
    OutputTextDeltaEvent,
    ResponseLifecycleEvent,
)
from ai_client.openai.responses import OpenAIResponsesReasoning

dotenv.load_dotenv()


async def main() -> None:
    client = OpenAIClient()
    request = OpenAIResponsesCreateRequest(
        model=OpenAIModel.GPT_5,
        input="Resume en tres frases la historia de la imprenta.",
        # gpt-5 no soporta "minimal": se envía como "none".
        reasoning=OpenAIResponsesReasoning(effort="minimal"),
        temperature=0.7,  # gpt-5 no acepta temperature; se descarta
    )

    stream = await client.agenerate_response_streamed(request)
    async with stream:
        async for item in stream:
            event = item.unwrap()
            if isinstance(event, OutputTextDeltaEvent):
                print(event.delta, end="", flush=True)
            elif isinstance(event, ResponseLifecycleEvent) and event.is_final:
                usage = event.response.usage
                print(f"\n\n[{event.type}] tokens={usage.total_tokens if usage else '?'}")

    await client.aclose()


asyncio.run(main())
