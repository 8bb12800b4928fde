"""Tool gating — which tools are offered for a (model, effort, selection) triple."""

from collections.abc import Sequence

from deep_research.tools.domain.spec import ALL_TOOLS, TOOL_SPECS, ToolSpec

# Deep-research models only accept provider-hosted tools.
_HOSTED_ONLY_MODELS = frozenset({"o3-deep-research"})


def select_tools(
    model: str, reasoning_effort: str, requested: Sequence[str]
) -> list[ToolSpec]:
    """Return the tool specs enabled for this request, in declaration order.

    A tool is enabled when the caller requested it (or ``all``) and the
    model/effort combination supports it: ``minimal`` effort disables web
    search and hosted-only models disable function tools.
    """
    wanted = set(requested)
    enabled: list[ToolSpec] = []
    for name, spec in TOOL_SPECS.items():
        if ALL_TOOLS not in wanted and name not in wanted:
            continue
        if spec.kind == "hosted" and reasoning_effort == "minimal":
            continue
        if spec.kind == "function" and _bare_model(model) in _HOSTED_ONLY_MODELS:
            continue
        enabled.append(spec)
    return enabled


def _bare_model(model: str) -> str:
    return model.rpartition("/")[2]
