"""字节块 → 文本的增量解码。"""

import codecs


class ChunkDecoder:
    """把响应 body 的原始字节块解码为文本。

    传输层的块边界没有语义，一个多字节 UTF-8 字符可能被切在两个块之间，
    所以必须使用增量解码器（final=False），把不完整的尾部字节留到下一块。
    """

    def __init__(self, encoding: str = "utf-8", errors: str = "replace"):
        self._encoding = encoding
        self._errors = errors
        self._decoder = codecs.getincrementaldecoder(encoding)(errors=errors)

    def feed(self, chunk: bytes) -> str:
        if not chunk:
            return ""
        return self._decoder.decode(chunk, final=False)

    def flush(self) -> str:
        """流物理结束时调用，输出残留字节（不完整序列按 errors 策略处理）。"""

        return self._decoder.decode(b"", final=True)

    def reset(self) -> None:
        self._decoder.reset()
