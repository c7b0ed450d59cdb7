"""工具目录。

ToolRegistry 只负责描述工具：每次查询 Provider 时原样传入，
不做任何校验或执行。
"""

from typing import Tuple

from .definitions import ToolDef, ToolName, ToolParam


_TOOL_DEFS: Tuple[ToolDef, ...] = (
    ToolDef(
        name=ToolName.GOOGLE_SEARCH.value,
        description="Search Google for information and return snippet results",
        params={
            "query": ToolParam(
                name="query",
                description="The search query",
                required=True,
                schema={"type": "string"},
            )
        },
    ),
    ToolDef(
        name=ToolName.AI_PIPE.value,
        description="Execute an AI workflow using the aipipe proxy",
        params={
            "workflow": ToolParam(
                name="workflow",
                description="The workflow description or pipeline to execute",
                required=True,
                schema={"type": "string"},
            )
        },
    ),
    ToolDef(
        name=ToolName.EXECUTE_JS.value,
        description="Execute JavaScript code in a sandbox and return results",
        params={
            "code": ToolParam(
                name="code",
                description="The JavaScript code to execute",
                required=True,
                schema={"type": "string"},
            )
        },
    ),
)


class ToolRegistry:
    """会话内固定不变的工具描述集合。"""

    def describe(self) -> Tuple[ToolDef, ...]:
        return _TOOL_DEFS
