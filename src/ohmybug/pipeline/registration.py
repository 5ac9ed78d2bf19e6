"""Stock tool sets for the pipeline engine."""

from __future__ import annotations

from ohmybug.pipeline.engine import PipelineEngine
from ohmybug.tools.build import BuildChecker
from ohmybug.tools.custom import load_custom_tools
from ohmybug.tools.linters import (
    DartAnalyzerScanner,
    DartFormatScanner,
    ESLintScanner,
    FlutterAnalyzerScanner,
    PrettierScanner,
    RuffFormatScanner,
    RuffScanner,
    SwiftFormatScanner,
    SwiftLintScanner,
)


def register_swift_tools(engine: PipelineEngine) -> None:
    swiftlint = SwiftLintScanner()
    swiftformat = SwiftFormatScanner()
    engine.register_scanner(swiftlint)
    engine.register_scanner(swiftformat)
    engine.register_scanner(BuildChecker())
    engine.register_fixer(swiftlint)
    engine.register_fixer(swiftformat)


def register_js_tools(engine: PipelineEngine) -> None:
    eslint = ESLintScanner()
    prettier = PrettierScanner()
    engine.register_scanner(eslint)
    engine.register_scanner(prettier)
    engine.register_fixer(eslint)
    engine.register_fixer(prettier)


def register_flutter_tools(engine: PipelineEngine) -> None:
    dart_format = DartFormatScanner()
    engine.register_scanner(DartAnalyzerScanner())
    engine.register_scanner(dart_format)
    engine.register_scanner(FlutterAnalyzerScanner())
    engine.register_fixer(dart_format)


def register_python_tools(engine: PipelineEngine) -> None:
    ruff = RuffScanner()
    ruff_format = RuffFormatScanner()
    engine.register_scanner(ruff)
    engine.register_scanner(ruff_format)
    engine.register_fixer(ruff)
    engine.register_fixer(ruff_format)


def register_custom_tools(engine: PipelineEngine) -> int:
    """Register tools defined under ``.ohmybug-tools/``. Returns how many were loaded."""
    tools = load_custom_tools(engine.config.project_path)
    for tool in tools:
        engine.register_scanner(tool)
        if tool.can_fix:
            engine.register_fixer(tool)
    return len(tools)


def register_all_tools(engine: PipelineEngine) -> None:
    register_swift_tools(engine)
    register_js_tools(engine)
    register_flutter_tools(engine)
    register_python_tools(engine)
    register_custom_tools(engine)


def register_ai_fixer(engine: PipelineEngine, api_key: str, max_issues: int = 20) -> None:
    """Register the LLM-backed fixer over the scanners registered so far.

    Call it last: it runs after every other fixer. The fixer closes its HTTP
    connection pool at the end of each fix pass.
    """
    from ohmybug.fixers.ai import AIFixer
    from ohmybug.fixers.llm import LLMClient

    ai = engine.config.ai
    client = LLMClient(
        api_key=api_key,
        endpoint=ai.endpoint,
        model=ai.model,
        timeout=ai.timeout,
    )
    engine.register_fixer(AIFixer(
        client,
        scanners=engine.scanners,
        max_issues=max_issues,
        project_type=engine.config.project_type,
    ))
