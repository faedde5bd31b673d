# -*- coding: utf-8 -*-
"""
Translation dictionaries for English and Korean.

This module contains all translatable strings for the FocusTimer application.
"""

TRANSLATIONS = {
    "en": {
        # Application
        "app.name": "FocusTimer",
        "app.ready": "FocusTimer Ready",
        "app.idle_title": "FocusTimer",

        # Tray menu
        "tray.show_window": "Show Window",
        "tray.quit": "Quit",
        "tray.minimized": "Application minimized to tray. Click icon to restore.",

        # Main window
        "main.title": "FocusTimer",
        "main.task_placeholder": "New task title...",
        "main.add": "Add",
        "main.refresh": "Refresh",
        "main.empty": "No tasks yet. Add one above.",

        # Task row
        "task.play": "Start",
        "task.pause": "Pause",
        "task.complete": "Complete",
        "task.reopen": "Reopen",
        "task.archive": "Archive",
        "task.extend": "+{minutes} min",
        "task.paused_at": "Paused {remaining} left",

        # Add task dialog
        "task_dialog.title": "New Task",
        "task_dialog.name": "Title",
        "task_dialog.duration": "Expected duration (minutes)",
        "task_dialog.important": "Important",

        # Urgency
        "urgency.normal": "Started",
        "urgency.warning": "In progress",
        "urgency.critical": "Focus!",

        # Notifications
        "notify.timer_ended_title": "Time's up!",
        "notify.timer_ended_body": "Time for \"{title}\" has run out.",
        "notify.completed_title": "Completed: {title}",
        "notify.completed_body": "You finished the task!",
        "notify.completed_body_duration": "You finished the task in {minutes} minutes!",

        # Errors
        "error": "Error",
        "error.start_failed": "Failed to start task:\n{error}",
        "error.update_failed": "Could not update the task. Please retry.\n{error}",
        "error.load_failed": "Failed to load tasks:\n{error}",
        "error.init_failed": "Failed to initialize application:\n{error}",
    },
    "ko": {
        # Application
        "app.name": "미루미",
        "app.ready": "미루미 준비 완료",
        "app.idle_title": "미루미",

        # Tray menu
        "tray.show_window": "앱 열기",
        "tray.quit": "종료",
        "tray.minimized": "트레이로 최소화되었습니다. 아이콘을 눌러 복원하세요.",

        # Main window
        "main.title": "미루미",
        "main.task_placeholder": "새 작업 제목...",
        "main.add": "추가",
        "main.refresh": "새로고침",
        "main.empty": "작업이 없습니다. 위에서 추가하세요.",

        # Task row
        "task.play": "시작",
        "task.pause": "일시정지",
        "task.complete": "완료",
        "task.reopen": "다시 열기",
        "task.archive": "보관",
        "task.extend": "+{minutes}분",
        "task.paused_at": "{remaining} 남음",

        # Add task dialog
        "task_dialog.title": "새 작업",
        "task_dialog.name": "제목",
        "task_dialog.duration": "예상 시간 (분)",
        "task_dialog.important": "중요",

        # Urgency
        "urgency.normal": "시작됨",
        "urgency.warning": "진행 중",
        "urgency.critical": "집중!",

        # Notifications
        "notify.timer_ended_title": "⏰ 시간 종료!",
        "notify.timer_ended_body": "\"{title}\" 작업 시간이 종료되었습니다.",
        "notify.completed_title": "✅ {title}",
        "notify.completed_body": "작업을 완료했습니다! 🎉",
        "notify.completed_body_duration": "{minutes}분 동안 작업을 완료했습니다! 🎉",

        # Errors
        "error": "오류",
        "error.start_failed": "작업을 시작하지 못했습니다:\n{error}",
        "error.update_failed": "작업을 변경하지 못했습니다. 다시 시도하세요.\n{error}",
        "error.load_failed": "작업 목록을 불러오지 못했습니다:\n{error}",
        "error.init_failed": "앱을 초기화하지 못했습니다:\n{error}",
    },
}
