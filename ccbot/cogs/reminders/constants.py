"""Reminder feature constants."""

from ccbot.shared.models.schedule import ResponseTemplate, ScheduleDefinition, ScheduleType

REMINDER_TEXT = """Sup all $(mention),

**Friendly reminder:** Need to make a post on social media!

React to this message
❤️ - Automatically send a message in Discord

*Not necessary to react; you can send message manually.*"""

# Written to the schedule file when it does not exist yet. Channel ids are
# placeholders, so every entry ships disabled until an operator fills them in.
DEFAULT_SCHEDULES: list[ScheduleDefinition] = [
    ScheduleDefinition(
        name="climbing",
        type=ScheduleType.WEEKLY,
        enabled=False,
        source_channel="0",
        response_channel="0",
        hour=17,
        minute=30,
        second=0,
        day_of_week=0,
        timezone="Europe/Stockholm",
        message_content=REMINDER_TEXT,
        responses=[
            ResponseTemplate(
                title="Climbing",
                content=(
                    "Hi $(mention),\nJoin us, every Monday, for our climbing event!\n\n"
                    "**Time:** 17:30\n**Location:** Idrottshuset\n\n"
                    "We'll provide all the gear, so just bring yourself!"
                ),
            ),
        ],
    ),
    ScheduleDefinition(
        name="board-games",
        type=ScheduleType.WEEKLY,
        enabled=False,
        source_channel="0",
        response_channel="0",
        hour=17,
        minute=30,
        second=0,
        day_of_week=1,
        timezone="Europe/Stockholm",
        message_content=REMINDER_TEXT,
        responses=[
            ResponseTemplate(
                title="Board Game Night",
                content=(
                    "$(mention)\nBoard Game Night is happening every Tuesday at 18:00! "
                    "Entry is free as always. Feel free to bring your own games to share!"
                ),
            ),
        ],
    ),
    ScheduleDefinition(
        name="crafts",
        type=ScheduleType.WEEKLY,
        enabled=False,
        source_channel="0",
        response_channel="0",
        hour=17,
        minute=30,
        second=0,
        day_of_week=4,
        timezone="Europe/Stockholm",
        message_content=REMINDER_TEXT,
        responses=[
            ResponseTemplate(
                title="Craft Night",
                content=(
                    "$(mention)\n**Tonight is craft night again!** 18-22, drop in. "
                    "Everyone from beginners to craft professionals is welcome!"
                ),
            ),
        ],
    ),
]
