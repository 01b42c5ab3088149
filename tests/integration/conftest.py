import os

import pytest
from dotenv import find_dotenv, load_dotenv

# Cargar .env lo más temprano posible (antes de pytest_collection_modifyitems)
load_dotenv(find_dotenv(usecwd=True))

# Variable de entorno requerida según el proveedor que usa cada módulo de test.
_REQUIRED_KEYS = {
    "test_openai_live.py": "OPENAI_API_KEY",
    "test_gemini_live.py": "GEMINI_API_KEY",
}


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    for item in items:
        if "integration" not in item.keywords:
            continue
        env_var = _REQUIRED_KEYS.get(item.path.name)
        if env_var and not os.getenv(env_var):
            item.add_marker(pytest.mark.skip(reason=f"Falta {env_var} en entorno/.env"))
