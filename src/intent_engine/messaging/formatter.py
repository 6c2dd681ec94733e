# src/intent_engine/messaging/formatter.py

"""User-facing reply texts (Markdown, emoji included)."""

from __future__ import annotations

from ..tasks.task_models import EnergyLevel, Task, TaskStatus

ENERGY_EMOJI: dict[EnergyLevel, str] = {
    EnergyLevel.LOW: "🟢",
    EnergyLevel.MEDIUM: "🟡",
    EnergyLevel.HIGH: "🔴",
}


class MessageFormatter:
    @staticmethod
    def task_list(tasks: list[Task]) -> str:
        if not tasks:
            return "📋 *No tasks yet!*\n\nAdd one with: `+ your task here`"

        lines = []
        for i, task in enumerate(tasks, start=1):
            status = "✅" if task.status == TaskStatus.DONE else "⏳"
            lines.append(f"{i}. {status} {ENERGY_EMOJI[task.energy]} {task.text}")
        return "📋 *Your Tasks:*\n\n" + "\n".join(lines)

    @staticmethod
    def task_added(task: Task) -> str:
        return f'✅ *Added:* {ENERGY_EMOJI[task.energy]} "{task.text}"'

    @staticmethod
    def task_completed(task: Task) -> str:
        return f'🎉 *Completed:* "{task.text}"\n\nGreat work! Keep it up!'

    @staticmethod
    def error(message: str) -> str:
        return f"❌ {message}\n\nType /help for available commands."

    @staticmethod
    def help() -> str:
        return "\n".join(
            [
                "🤖 *Daily Intent Engine Commands:*",
                "",
                "`+ task description` - Add a new task",
                "`/alltasks` - Show all pending tasks",
                "`/done <number>` - Mark task as complete",
                "`/help` - Show this help message",
            ]
        )

    @staticmethod
    def welcome() -> str:
        return "\n".join(
            [
                "👋 *Welcome to Daily Intent Engine!*",
                "",
                "I help you focus on 2-3 meaningful tasks per day.",
                "",
                "📝 *Get started:*",
                "• Add a task: `+ write tests`",
                "• View tasks: `/alltasks`",
                "• Complete task: `/done 1`",
                "",
                "Need help? Type `/help`",
            ]
        )
