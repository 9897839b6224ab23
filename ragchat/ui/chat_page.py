"""NiceGUI chat page driving a ChatSession."""

from nicegui import ui

from ragchat.chat.client import ChatApiClient
from ragchat.chat.session import ChatSession, ConnectionStatus
from ragchat.models.schemas import ChatMessage

CUSTOM_CSS = """
<style>
    .message-user { background: #4f46e5; color: white; border-radius: 18px 18px 4px 18px; }
    .message-assistant { background: #f3f4f6; color: #1f2937; border-radius: 18px 18px 18px 4px; }
</style>
"""

STATUS_LABELS = {
    ConnectionStatus.IDLE: "Idle",
    ConnectionStatus.CONNECTING: "Connecting...",
    ConnectionStatus.CONNECTED: "Connected",
    ConnectionStatus.ERROR: "Offline",
}


@ui.page("/")
async def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)

    messages_container: ui.column
    input_field: ui.textarea
    status_label: ui.label

    def notify(message: str, level: str) -> None:
        ui.notify(message, type=level)

    def render_message(index: int, msg: ChatMessage) -> None:
        is_user = msg.role == "user"
        with ui.row().classes(f"w-full {'justify-end' if is_user else 'justify-start'}"):
            with ui.element("div").classes(
                f"px-4 py-3 max-w-[70%] {'message-user' if is_user else 'message-assistant'}"
            ):
                if is_user:
                    ui.label(msg.content).classes("text-sm whitespace-pre-wrap")
                elif msg.content:
                    ui.markdown(msg.content).classes("text-sm")
                else:
                    ui.spinner("dots")
            if is_user:
                ui.button(icon="edit", on_click=lambda: edit_message(index)).props("flat round dense")

    def refresh() -> None:
        messages_container.clear()
        with messages_container:
            if not session.messages:
                ui.label("Start a conversation").classes("text-lg text-gray-400 self-center")
            for index, msg in enumerate(session.messages):
                render_message(index, msg)
        status_label.set_text(STATUS_LABELS[session.status])
        send_btn.set_visibility(not session.is_submitting)
        stop_btn.set_visibility(session.is_submitting)

    session = ChatSession(ChatApiClient(), notify=notify, on_change=lambda: refresh())

    async def send_message() -> None:
        text = input_field.value or ""
        if await session.submit(text):
            input_field.value = ""

    def edit_message(index: int) -> None:
        with ui.dialog() as dialog, ui.card().classes("w-96"):
            editor = ui.textarea(value=session.messages[index].content).classes("w-full")

            async def resubmit() -> None:
                dialog.close()
                await session.edit_and_resubmit(index, editor.value or "")

            with ui.row():
                ui.button("Resend", on_click=resubmit)
                ui.button("Cancel", on_click=dialog.close).props("flat")
        dialog.open()

    with ui.column().classes("w-full max-w-3xl mx-auto").style("height: calc(100vh - 2rem)"):
        with ui.row().classes("w-full items-center justify-between"):
            ui.label("RAG Assistant").classes("text-lg font-semibold")
            with ui.row().classes("items-center gap-2"):
                status_label = ui.label().classes("text-xs text-gray-500")
                ui.button(icon="replay", on_click=session.retry).props("flat round")
                ui.button(icon="add", on_click=session.new_session).props("flat round")

        with ui.scroll_area().classes("flex-grow w-full bg-gray-50"):
            messages_container = ui.column().classes("w-full gap-4 p-4")

        with ui.row().classes("w-full gap-3 items-end"):
            input_field = (
                ui.textarea(placeholder="Type a message...")
                .props("autogrow dense rows=1")
                .classes("flex-grow")
                .on("keydown.enter.prevent", send_message)
            )
            send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")
            stop_btn = ui.button(icon="stop", on_click=session.stop).props("round unelevated color=negative")

    refresh()
    await session.connect()
