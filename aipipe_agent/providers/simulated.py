"""模拟 Provider。

没有可用凭证或真实调用失败时使用的规则引擎。它只看最近一条用户消息，
按固定优先级匹配关键词，产出与真实 Provider 相同结构的 ProviderReply。

除最后的通用兜底回复外结果都是确定的；兜底回复的随机源可注入，
测试里固定种子即可锁定分支。
"""

import random
import time
from typing import List, Optional, Sequence

from aipipe_agent.domain.conversation import last_user_message
from aipipe_agent.domain.models import Message, ProviderReply
from aipipe_agent.tools.definitions import ToolCall, ToolDef, ToolName


# 出现任意一个即不再视为“隐式搜索主题”
EXPLICIT_INTENT_MARKERS = ("search", "run", "calculate", "pipeline", "workflow", "what can you do")
WORKFLOW_MARKERS = ("pipeline", "workflow", "text processing", "ai pipe")
SEARCH_MARKERS = ("search", "find", "look up", "information about")
CODE_MARKERS = ("fibonacci", "calculate", "math", "run")
HELP_MARKERS = ("what can you do", "capabilities", "help")

SEARCH_STOP_WORDS = frozenset(
    ["search", "find", "look", "up", "for", "about", "the", "a", "an", "information", "me", "please"]
)
DEFAULT_SEARCH_QUERY = "general information"

CAPABILITIES_TEXT = (
    "I'm an LLM agent with multiple tool capabilities! I can:\n\n"
    "🔍 Search for information\n"
    "💻 Execute JavaScript code\n"
    "🤖 Run AI workflows\n"
    "💬 Have conversations\n\n"
    'Try "search for...", "calculate...", or "run workflow for..." to see me in action!'
)

FIBONACCI_SNIPPET = """
// Fibonacci sequence generator
function fibonacci(n) {
    if (n <= 1) return n;
    let a = 0, b = 1;
    const sequence = [a, b];

    for (let i = 2; i < n; i++) {
        const next = a + b;
        sequence.push(next);
        a = b;
        b = next;
    }
    return sequence;
}

const fibResult = fibonacci(10);
console.log('Fibonacci sequence (10 numbers):', fibResult);
fibResult;
""".strip()

MATH_SNIPPET = """
// Various math calculations
const calculations = {
    square: (x) => x * x,
    factorial: (n) => n <= 1 ? 1 : n * calculations.factorial(n - 1),
    prime: (n) => {
        if (n < 2) return false;
        for (let i = 2; i <= Math.sqrt(n); i++) {
            if (n % i === 0) return false;
        }
        return true;
    }
};

const results = {
    square_of_12: calculations.square(12),
    factorial_of_5: calculations.factorial(5),
    is_17_prime: calculations.prime(17),
    random_calculation: Math.PI * 2
};

console.log('Math calculations:', results);
results;
""".strip()

DATETIME_SNIPPET = """
// Date and time operations
const now = new Date();
const nextNewYear = new Date(now.getFullYear() + 1, 0, 1);
const timeInfo = {
    current: now.toISOString(),
    timestamp: now.getTime(),
    day_of_week: ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday'][now.getDay()],
    days_until_new_year: Math.ceil((nextNewYear - now) / (1000 * 60 * 60 * 24))
};

console.log('Time information:', timeInfo);
timeInfo;
""".strip()

DEMO_SNIPPET = """
// Sample JavaScript demonstration
const demo = {
    greeting: "Hello from the LLM Agent!",
    timestamp: new Date().toISOString(),
    random_number: Math.floor(Math.random() * 100),
    calculation: 2 ** 10,
};

console.log('Demo output:', demo);
demo;
""".strip()


def extract_search_query(content: str) -> str:
    """去掉停用词和长度不超过 2 的词，剩下的词即搜索关键词。"""

    words = [
        word for word in content.split()
        if word.lower() not in SEARCH_STOP_WORDS and len(word) > 2
    ]
    return " ".join(words) or DEFAULT_SEARCH_QUERY


def generate_sample_code(content: str) -> str:
    lc = content.lower()
    if "fibonacci" in lc:
        return FIBONACCI_SNIPPET
    if "calculate" in lc or "math" in lc:
        return MATH_SNIPPET
    if "date" in lc or "time" in lc:
        return DATETIME_SNIPPET
    return DEMO_SNIPPET


def _contains_any(text: str, markers: Sequence[str]) -> bool:
    return any(marker in text for marker in markers)


class SimulatedProvider:
    """确定性的规则 Provider，不会抛出异常。"""

    name = "simulated"

    def __init__(self, rng: Optional[random.Random] = None, delay: float = 0.0):
        self._rng = rng or random.Random()
        self._delay = delay

    def query(self, messages: Sequence[Message], tools: Sequence[ToolDef]) -> ProviderReply:
        if self._delay:
            time.sleep(self._delay)
        last = last_user_message(messages)
        return self.classify(last.content.strip() if last else "")

    def classify(self, text: str) -> ProviderReply:
        lc = text.lower()

        # 多词输入且没有显式意图：当作搜索主题
        if len(text.split()) >= 2 and not _contains_any(lc, EXPLICIT_INTENT_MARKERS):
            return self._search_reply(text)

        if _contains_any(lc, WORKFLOW_MARKERS):
            return ProviderReply(
                output_text="I'll execute an AI workflow for you using the AI Pipe system.",
                tool_calls=[self._tool_call("pipe", ToolName.AI_PIPE, {"workflow": lc})],
            )

        if _contains_any(lc, SEARCH_MARKERS):
            return self._search_reply(extract_search_query(lc))

        if _contains_any(lc, CODE_MARKERS):
            if "fibonacci" in lc:
                desc = "I'll generate the Fibonacci sequence using JavaScript."
            else:
                desc = "I'll perform some mathematical calculations for you."
            return ProviderReply(
                output_text=desc,
                tool_calls=[self._tool_call("js", ToolName.EXECUTE_JS, {"code": generate_sample_code(lc)})],
            )

        if _contains_any(lc, HELP_MARKERS):
            return ProviderReply(output_text=CAPABILITIES_TEXT)

        return ProviderReply(output_text=self._rng.choice(self._fallback_texts(text)))

    def _search_reply(self, query: str) -> ProviderReply:
        return ProviderReply(
            output_text=f'I\'ll search for information about "{query}" to help you.',
            tool_calls=[self._tool_call("search", ToolName.GOOGLE_SEARCH, {"query": query})],
        )

    @staticmethod
    def _fallback_texts(text: str) -> List[str]:
        return [
            f'I understand you\'re asking about: "{text}". How can I assist you further?',
            "That's interesting! Tell me more about what you'd like to know or do.",
            "I'm here to help! You can ask me to search for information, run code, or execute AI workflows.",
        ]

    @staticmethod
    def _tool_call(prefix: str, tool: ToolName, arguments: dict) -> ToolCall:
        return ToolCall(id=f"{prefix}_{int(time.time() * 1000)}", name=tool.value, arguments=arguments)
