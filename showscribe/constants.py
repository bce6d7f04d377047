APP_NAME = "showscribe"

# Provider id -> package under showscribe.providers
TRANSCRIPTION_PROVIDERS = {
    "deepgram": "deepgram",
    "assembly": "assembly",
    "whisper": "whisper",
}

LLM_PROVIDERS = {
    "chatgpt": "openai_compat",
    "deepseek": "openai_compat",
    "fireworks": "openai_compat",
    "together": "openai_compat",
    "groq": "openai_compat",
    "mistral": "openai_compat",
    "claude": "claude",
    "gemini": "gemini",
    "cohere": "cohere",
    "ollama": "ollama",
}

PROVIDER_MODULES = {**TRANSCRIPTION_PROVIDERS, **LLM_PROVIDERS}

# Environment variable holding each provider's credential
API_KEY_ENV = {
    "deepgram": "DEEPGRAM_API_KEY",
    "assembly": "ASSEMBLY_API_KEY",
    "chatgpt": "OPENAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "cohere": "COHERE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "fireworks": "FIREWORKS_API_KEY",
    "together": "TOGETHER_API_KEY",
    "groq": "GROQ_API_KEY",
}

PROMPT_SECTIONS = [
    "titles", "summary", "shortChapters", "mediumChapters", "longChapters", "takeaways", "questions"
]
DEFAULT_PROMPT_SECTIONS = ["summary", "longChapters"]
