from __future__ import annotations

import argparse
import sys
from typing import Any, TextIO

from taskboard.config import default_base_url

from .state import FILTERS, TaskBoard

HELP = (
    "/add <title> [| <description>], /filter <status>, /open <n>, "
    "/done, /progress, /review, /delete, /cancel, /refresh, /quit"
)

# popup command -> status it transitions to
STATUS_COMMANDS = {
    "/done": "done",
    "/progress": "in-progress",
    "/review": "under-review",
}


def _label(status: str) -> str:
    return status.replace("-", " ")


class BoardView:
    """Renders a TaskBoard as text and maps REPL commands onto it."""

    def __init__(self, board: TaskBoard, out: TextIO | None = None) -> None:
        self._board = board
        self._out = out or sys.stdout

    def println(self, text: str = "") -> None:
        self._out.write(text + "\n")
        self._out.flush()

    def render(self) -> None:
        state = self._board.state
        bar = " ".join(f"[{_label(f)}]" if f == state.filter else _label(f) for f in FILTERS)
        self.println(f"Filter: {bar}")
        visible = self._board.visible_tasks()
        if not visible:
            self.println("  (no tasks)")
        for n, task in enumerate(visible, start=1):
            line = f"  {n}. {task.get('title', '')} ({_label(str(task.get('status', '')))})"
            if task.get("description"):
                line = f"{line} - {task['description']}"
            self.println(line)
        if state.popup_open and state.selected is not None:
            self._render_popup(state.selected)

    def _render_popup(self, task: dict[str, Any]) -> None:
        self.println(f"> {task.get('title', '')}")
        if task.get("description"):
            self.println(f"  {task['description']}")
        self.println("  /done  /progress  /review  |  /cancel  /delete")

    def _open(self, arg: str) -> None:
        visible = self._board.visible_tasks()
        try:
            index = int(arg) - 1
        except ValueError:
            self.println("usage: /open <n>")
            return
        if not 0 <= index < len(visible):
            self.println(f"no task #{arg}")
            return
        self._board.select(visible[index])

    def _selected_id(self) -> str | None:
        state = self._board.state
        if not state.popup_open or state.selected is None:
            self.println("open a task first: /open <n>")
            return None
        return state.selected.get("id")

    def handle(self, line: str) -> bool:
        """Apply one command. Returns False when the session should end."""
        line = line.strip()
        if not line:
            return True
        cmd, _, arg = line.partition(" ")
        arg = arg.strip()
        if cmd == "/quit":
            return False
        if cmd == "/help":
            self.println(HELP)
            return True
        if cmd == "/add":
            title, _, description = arg.partition("|")
            self._board.set_inputs(title.strip(), description.strip())
            self._board.add()
        elif cmd == "/filter":
            try:
                self._board.set_filter(arg or "all")
            except ValueError as exc:
                self.println(str(exc))
                return True
        elif cmd == "/open":
            self._open(arg)
        elif cmd in STATUS_COMMANDS:
            task_id = self._selected_id()
            if task_id is None:
                return True
            self._board.update_status(task_id, STATUS_COMMANDS[cmd])
        elif cmd == "/delete":
            task_id = self._selected_id()
            if task_id is None:
                return True
            self._board.delete(task_id)
        elif cmd == "/cancel":
            self._board.cancel()
        elif cmd == "/refresh":
            self._board.fetch_all()
        else:
            self.println(f"unknown command {cmd}; {HELP}")
            return True
        self.render()
        return True


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser("taskboard client")
    p.add_argument(
        "--base-url",
        default=default_base_url(),
        help="API base URL (e.g., http://localhost:8000)",
    )
    p.add_argument("--timeout", type=float, default=10.0, help="HTTP timeout in seconds")
    return p.parse_args(argv)


def repl(board: TaskBoard, stdin: TextIO | None = None, out: TextIO | None = None) -> None:
    view = BoardView(board, out)
    board.fetch_all()
    view.println("Task Manager. Commands: /help")
    view.render()
    for line in stdin or sys.stdin:
        if not view.handle(line.rstrip("\n")):
            break


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    board = TaskBoard.connect(str(args.base_url), timeout=float(args.timeout))
    try:
        repl(board)
    finally:
        board.close()


if __name__ == "__main__":
    main()
