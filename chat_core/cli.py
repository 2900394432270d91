"""命令行入口：python -m chat_core 或 chat-core。"""

import argparse
import sys
from typing import List, Optional

from chat_core.api import service
from chat_core.domain.exceptions import BusinessError, WriteError
from chat_core.infrastructure.logging.logger import add_console_handler


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="chat-core", description="Query a chat completion endpoint with persistent history.")
    p.add_argument("query", nargs="*", help="要发送的问题；多个参数以空格拼接")
    p.add_argument("--stream", action="store_true", help="流式输出回答")
    p.add_argument("--model", default=None, help="覆盖配置中的模型 ID")
    p.add_argument("--clear-history", action="store_true", help="清空对话历史")
    p.add_argument("-i", "--interactive", action="store_true", help="交互模式，输入 exit 或 quit 退出")
    p.add_argument("-v", "--verbose", action="store_true", help="同时把日志输出到 stderr")
    return p.parse_args(argv)


def _ask(text: str, stream: bool, model: Optional[str]) -> None:
    if stream:
        for delta in service.run_query(text, stream=True, model=model):
            print(delta, end="", flush=True)
        print()
    else:
        print(service.run_query(text, model=model))


def _run(text: str, args: argparse.Namespace) -> int:
    try:
        _ask(text, args.stream, args.model)
    except WriteError as e:
        answer = e.extra.get("answer")
        if answer is not None and not args.stream:
            print(answer)
        print(f"Warning: failed to save history: {e.message}", file=sys.stderr)
        return 1
    except BusinessError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


def _interactive(args: argparse.Namespace) -> int:
    status = 0
    while True:
        try:
            line = input("> ")
        except EOFError:
            print()
            break
        text = line.strip()
        if not text:
            continue
        if text in {"exit", "quit"}:
            break
        status = _run(text, args)
    return status


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.verbose:
        add_console_handler()
    text = " ".join(args.query).strip()

    if args.clear_history:
        try:
            service.clear_history()
        except BusinessError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
        print("History cleared.")
        if not text and not args.interactive:
            return 0

    if args.interactive:
        return _interactive(args)
    if not text:
        print("usage: chat-core [--stream] [--model MODEL] [--clear-history] [-i] [query ...]", file=sys.stderr)
        return 2
    return _run(text, args)


if __name__ == "__main__":
    sys.exit(main())
