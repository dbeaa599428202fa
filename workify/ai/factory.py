from workify.ai.config import load_ai_config
from workify.ai.providers.openai_provider import OpenAIProvider


def get_ai_client() -> OpenAIProvider:
    cfg = load_ai_config()

    if cfg.provider == "openai":
        return OpenAIProvider(model=cfg.model, embedding_model=cfg.embedding_model)

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
