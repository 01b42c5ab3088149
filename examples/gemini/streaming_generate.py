import dotenv

from ai_client.gemini import Content, GeminiClient, GeminiModel, GenerateContentRequest, GenerationConfig, Part

dotenv.load_dotenv()

client = GeminiClient()

request = GenerateContentRequest(
    contents=[Content(role="user", parts=[Part.from_text("Escribe un haiku sobre el mar")])],
    generation_config=GenerationConfig(temperature=0.9, max_output_tokens=200),
)

with client.generate_content_streamed(GeminiModel.GEMINI_2_5_FLASH, request) as stream:
    for item in stream:
        print(item.unwrap().text, end="", flush=True)
print()
