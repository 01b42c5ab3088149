import dotenv

from ai_client.gemini import GeminiClient, ModelsListRequest

dotenv.load_dotenv()

client = GeminiClient()

page = client.list_models_with_params(ModelsListRequest(page_size=50))
while True:
    for info in page.models:
        known = info.known_model()
        print(f"{info.name:45} {'soportado' if known else '-':10} {','.join(info.supported_generation_methods)}")
    if not page.next_page_token:
        break
    page = client.list_models_with_params(ModelsListRequest(page_size=50, page_token=page.next_page_token))
