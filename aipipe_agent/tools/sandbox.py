"""JavaScript 沙箱。

execute_js 工具在独立的 V8 isolate（mini-racer）中求值：
- 每次调用新建上下文，调用之间不共享全局状态。
- isolate 内没有文件系统、网络、进程等宿主能力。
- 求值受超时（毫秒）和堆内存上限约束。

console.log 被替换为收集器，输出随结果一起返回。
进程内所有求值串行执行（见 _V8_LOCK），其他工具的调用不受影响。
"""

import json
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from py_mini_racer import JSEvalException, MiniRacer

from aipipe_agent.domain.exceptions import ExecutionError

# isolate 的创建、求值与关闭都必须串行，并发执行会使 mini-racer 崩溃
_V8_LOCK = threading.Lock()


_PRELUDE = """
var __console_lines = [];
globalThis.console = {
    log: function () {
        __console_lines.push(Array.prototype.map.call(arguments, function (a) {
            return typeof a === 'string' ? a : JSON.stringify(a);
        }).join(' '));
    }
};
globalThis.console.info = globalThis.console.log;
globalThis.console.warn = globalThis.console.log;
globalThis.console.error = globalThis.console.log;
"""

# 间接 eval 在全局作用域求值，返回值在 isolate 内序列化，只把字符串带回 Python
_RUNNER = """
(function () {
    var value = (0, eval)(%s);
    var output = value === undefined ? undefined : JSON.stringify(value, null, 2);
    return JSON.stringify({
        output: output === undefined ? null : output,
        console: __console_lines
    });
})()
"""


@dataclass
class JsEvaluation:
    """一次求值的结果；output 为 None 表示 undefined。"""

    output: Optional[str]
    console: List[str] = field(default_factory=list)

    @property
    def display(self) -> str:
        return self.output if self.output is not None else "undefined"


class JsSandbox:
    def __init__(self, timeout_ms: int = 2000, max_memory: int = 32 * 1024 * 1024):
        self._timeout_ms = timeout_ms
        self._max_memory = max_memory

    def evaluate(self, code: str) -> JsEvaluation:
        with _V8_LOCK:
            raw = self._run(code)
        if not isinstance(raw, str):
            raise ExecutionError(code="EXECUTION_ERROR", message="JavaScript execution failed: no result")
        data = json.loads(raw)
        return JsEvaluation(output=data.get("output"), console=list(data.get("console") or []))

    def _run(self, code: str):
        ctx = MiniRacer()
        try:
            ctx.eval(_PRELUDE)
            return ctx.eval(
                _RUNNER % json.dumps(code),
                timeout=self._timeout_ms,
                max_memory=self._max_memory,
            )
        except JSEvalException as exc:
            raise ExecutionError(
                code="EXECUTION_ERROR",
                message=f"JavaScript execution failed: {exc}",
            )
        finally:
            ctx.close()
