import dotenv

from ai_client.openai import OpenAIClient, OpenAIGenerateContentRequest, OpenAIModel

dotenv.load_dotenv()

client = OpenAIClient()

request = OpenAIGenerateContentRequest(
    model=OpenAIModel.GPT_4_1_MINI,
    messages=[{"role": "user", "content": "Explica en un párrafo qué es la ciencia"}],
    temperature=1,
)

with client.generate_content_streamed(request) as stream:
    for item in stream:
        if not item.ok:
            # Un chunk mal formado no corta el stream; un error de transporte sí.
            print(f"\n[stream error] {item.error}")
            continue
        for choice in item.value.choices:
            print(choice.delta.content or "", end="", flush=True)
print()
