"""MCP Prompts — pre-built interaction templates for nutrigenomics journeys."""

from __future__ import annotations

from fastmcp import FastMCP


def register_nutrition_prompts(mcp: FastMCP) -> None:
    """Register nutrigenomics MCP prompts."""

    @mcp.prompt()
    def nutrition_report_walkthrough_prompt() -> str:
        """Prompt template for walking through a personalized nutrition report."""
        return """I'd like to understand my genetic nutrition report. Please:

1. Summarize what each of my genetic markers means in plain language
2. Explain my highest risk category and why it scored that way
3. List the critical actions first, then the rest by priority
4. Describe what a typical day of eating could look like for me
5. Tell me which tests to discuss with my doctor and how often

Please remember these are wellness insights, not a diagnosis."""

    @mcp.prompt()
    def genotype_check_prompt(source: str = "my DNA test export") -> str:
        """Prompt template for validating a genotype before generating a report."""
        return f"""I have genotype results from {source}. Before generating a report:

1. Validate my genotype and tell me which markers are missing or unrecognized
2. Explain how complete the analysis will be
3. Then generate my nutrition report with privacy_mode 'strict'"""
