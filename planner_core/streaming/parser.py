"""SSE 风格的行解析。

上游返回的是 OpenAI 风格的流：

    data: {"choices":[{"delta":{"content":"Hel"}}]}\\n
    data: [DONE]\\n

这里只负责“切行 + 取 data 负载”，JSON 解析交给 DeltaAccumulator。
"""

from typing import List

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class EventLineParser:
    """从文本缓冲中提取完整的 `data:` 行。

    - 不以换行结尾的尾部片段保留在缓冲里，等待下一块数据；
    - 兼容 `\\n` 与 `\\r\\n`；
    - 非 data 行（空行 keep-alive、`: comment`、`event: ping` 等）直接丢弃；
    - 遇到 `[DONE]` 后进入 done 状态，之后的所有输入都被忽略。
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    @property
    def pending(self) -> str:
        """尚未遇到换行的尾部片段。"""

        return self._buffer

    def feed(self, text: str) -> List[str]:
        """追加一段已解码文本，返回本次得到的全部 data 负载（按出现顺序）。"""

        if self._done:
            return []
        self._buffer += text
        payloads: List[str] = []
        while True:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break
            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1 :]
            if line.endswith("\r"):
                line = line[:-1]
            if not line.startswith(DATA_PREFIX):
                continue
            payload = line[len(DATA_PREFIX) :].strip()
            if payload == DONE_SENTINEL:
                self._done = True
                self._buffer = ""
                break
            payloads.append(payload)
        return payloads

    def reset(self) -> None:
        self._buffer = ""
        self._done = False
