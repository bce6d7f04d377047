import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

from .constants import LLM_PROVIDERS, PROMPT_SECTIONS, TRANSCRIPTION_PROVIDERS
from .core.config import load_config
from .core.console import console as console_manager
from .core.cost import CostEstimator
from .core.errors import ConfigurationError, ShowScribeError
from .core.logger import APILogger
from .core.models import AudioSource, ConfigContext, LLMRequest, OrchestrationResult, StageConfig, TranscriptionRequest
from .core.reporting import CostReporter
from .core.templates import build_prompt
from .pipeline import Orchestrator

# Handlers are attached in main() once the config is loaded
logger = logging.getLogger("ShowScribe.CLI")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ShowScribe - transcripts and show notes from audio.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    parser.add_argument("--config", help="Path to config.yaml (default: ./config.yaml or ~/.config/showscribe/config.yaml)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    transcribe_parser = subparsers.add_parser("transcribe", help="Transcribe an audio file or URL")
    transcribe_parser.add_argument("audio", help="Local audio file or http(s) URL")
    transcribe_parser.add_argument("--provider", choices=sorted(TRANSCRIPTION_PROVIDERS), help="Transcription provider")
    transcribe_parser.add_argument("--model", help="Provider model id")
    transcribe_parser.add_argument("--speakers", action="store_true", help="Label speakers (diarization)")
    transcribe_parser.add_argument("--language", default="auto", help="Language hint (default: auto)")
    transcribe_parser.add_argument("--duration", type=float, help="Audio duration in seconds, for the cost estimate")
    transcribe_parser.add_argument("-o", "--output", help="Write the transcript to this file instead of stdout")

    generate_parser = subparsers.add_parser("generate", help="Generate show notes from a transcript")
    generate_parser.add_argument("transcript", help="Transcript text file")
    generate_parser.add_argument("--provider", choices=sorted(LLM_PROVIDERS), help="LLM provider")
    generate_parser.add_argument("--model", help="Provider model id")
    generate_parser.add_argument("--sections", nargs="+", choices=PROMPT_SECTIONS, help="Prompt sections to request")
    generate_parser.add_argument("-o", "--output", help="Write the show notes to this file instead of stdout")

    models_parser = subparsers.add_parser("models", help="Show rate tables as a cost estimate")
    models_parser.add_argument("--minutes", type=float, help="Audio minutes to price transcription models for")
    models_parser.add_argument("--input-tokens", type=int, help="Input tokens to price LLM models for")
    models_parser.add_argument("--output-tokens", type=int, help="Output tokens to price LLM models for")

    return parser


def _resolve_stage(
    context: ConfigContext, stage: Optional[StageConfig], provider: Optional[str], model: Optional[str], kind: str
) -> Tuple[str, str]:
    provider = provider or (stage.provider if stage else None)
    if not provider:
        raise ConfigurationError(f"No {kind} provider given. Use --provider or set '{kind}.provider' in config.yaml.")

    if not model:
        if stage and stage.provider == provider and stage.model:
            model = stage.model
        else:
            provider_config = context.providers.get(provider)
            model = getattr(provider_config, "default_model", None)
    if not model:
        raise ConfigurationError(f"No model given for {provider}. Use --model or set a default_model.")
    return provider, model


def _write_output(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        console_manager.success(f"Saved to {output}")
    else:
        console_manager.text(text)


def _report_error(error: Exception) -> None:
    if isinstance(error, ShowScribeError) and not error.retryable:
        hint = "Fix the configuration and run again."
    else:
        hint = "This may be temporary. Try again later."
    attempts = getattr(error, "attempts", None)
    message = f"{error}\n\nAttempts: {attempts}" if attempts else str(error)
    console_manager.error_panel(message, title=type(error).__name__, hint=hint)


def _report_cost(result: OrchestrationResult) -> None:
    if result.cost is not None:
        console_manager.cost(result.cost.cost, rate_found=result.cost.rate_found)


def cmd_transcribe(args, context: ConfigContext, orchestrator: Orchestrator) -> int:
    provider, model = _resolve_stage(context, context.transcribe, args.provider, args.model, "transcribe")
    request = TranscriptionRequest(
        provider=provider,
        model=model,
        audio=AudioSource.parse(args.audio),
        duration_seconds=args.duration,
        speaker_labels=args.speakers,
        language=args.language,
    )

    with console_manager.status(f"Transcribing with {provider}/{model}..."):
        result = orchestrator.run(request)

    if not result.ok:
        _report_error(result.error)
        return 1

    _write_output(str(result.transcript), args.output)
    _report_cost(result)
    return 0


def cmd_generate(args, context: ConfigContext, orchestrator: Orchestrator) -> int:
    provider, model = _resolve_stage(context, context.generate, args.provider, args.model, "generate")
    transcript_path = Path(args.transcript)
    if not transcript_path.exists():
        raise ConfigurationError(f"Transcript file not found: {transcript_path}")

    request = LLMRequest(
        provider=provider,
        model=model,
        prompt=build_prompt(args.sections or context.prompt_sections),
        transcript=transcript_path.read_text(encoding="utf-8"),
    )

    with console_manager.status(f"Generating show notes with {provider}/{model}..."):
        result = orchestrator.run(request)

    if not result.ok:
        _report_error(result.error)
        return 1

    _write_output(result.content, args.output)
    if result.usage:
        logger.info(
            f"Tokens: {result.usage.input_tokens} in / {result.usage.output_tokens} out "
            f"(stop reason: {result.usage.stop_reason})"
        )
    _report_cost(result)
    return 0


def cmd_models(args, estimator: CostEstimator) -> int:
    minutes = args.minutes
    if minutes is None and args.input_tokens is None and args.output_tokens is None:
        minutes = 60.0
    CostReporter(estimator).print_report(minutes, args.input_tokens, args.output_tokens)
    return 0


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from .utils import setup_logging

    try:
        context = load_config(args.config)
    except ConfigurationError as e:
        setup_logging(debug=args.verbose)
        _report_error(e)
        sys.exit(2)

    debug_mode = args.verbose or context.debug
    console_manager.configure(output_mode=context.output_mode, debug=debug_mode)
    log = setup_logging(log_dir=context.paths.logs, debug=debug_mode, output_mode=console_manager.output_mode)

    # Global exception handler
    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        log.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception

    estimator = CostEstimator.from_providers(context.providers)
    api_logger = APILogger(context.paths.api_log) if context.paths.api_log else None
    orchestrator = Orchestrator(context, estimator=estimator, api_logger=api_logger)

    try:
        if args.command == "transcribe":
            code = cmd_transcribe(args, context, orchestrator)
        elif args.command == "generate":
            code = cmd_generate(args, context, orchestrator)
        else:
            code = cmd_models(args, estimator)
    except ShowScribeError as e:
        _report_error(e)
        code = 1
    except KeyboardInterrupt:
        console_manager.warning("Interrupted")
        code = 130

    sys.exit(code)


if __name__ == "__main__":
    main()
