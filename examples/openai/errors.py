from ai_client import AiAPIError
from ai_client.openai import OpenAIClient, OpenAIGenerateContentRequest

try:
    client = OpenAIClient(api_key="anyway")
    res = client.generate_content(OpenAIGenerateContentRequest(messages=[{"role": "user", "content": "Hello"}]))
    print(res.text)
except AiAPIError as e:
    if e.is_auth_error:
        print("Check your OPENAI_API_KEY.")
    elif e.is_rate_limited:
        print("Rate limited, slow down.")
    elif e.is_server_error:
        print(f"Server error {e.status_code}, consider retrying.")
    else:
        print(e.to_dict())
