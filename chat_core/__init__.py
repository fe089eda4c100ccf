"""Chat Core 顶层包。

在纯文本文档里与大模型对话：文档本身就是界面，
用户编辑文档并触发生成，模型输出流式追加回同一文档。

核心由三部分组成：
- files: `+file` 指令解析与带自失效缓存的文件读取；
- document: 文档 -> 对话消息 解析器；
- controller: 单飞（single-flight）的生成控制器，负责请求/取消与流式写回。
"""

from chat_core.session import Session

__all__ = ["Session"]
