"""NiceGUI chat interface for the document assistant."""

from collections.abc import Iterable
from typing import Protocol

from nicegui import events, ui

from docassist.chat.sessions import Message
from docassist.client.errors import ChatRejectedError
from docassist.client.health import Connectivity
from docassist.context import AppContext
from docassist.uploads.files import FileStatus

CUSTOM_CSS = """
<style>
    body { background: #f5f5f5; }
    .message-user { background: #4f46e5; color: white; border-radius: 18px 18px 4px 18px; }
    .message-assistant { background: #f3f4f6; color: #1f2937; border-radius: 18px 18px 18px 4px; }
    .message-error { background: #fee2e2; color: #991b1b; border-radius: 18px 18px 18px 4px; }
</style>
"""

STATUS_TEXT = {
    FileStatus.PENDING: "Ready to upload",
    FileStatus.UPLOADING: "Uploading...",
    FileStatus.PROCESSING: "Processing document...",
    FileStatus.COMPLETED: "Completed",
    FileStatus.ERROR: "Failed",
}


class PickedFile(Protocol):
    """A file received from the upload element."""

    name: str

    async def read(self) -> bytes: ...


async def read_picked_files(files: Iterable[PickedFile]) -> list[tuple[str, bytes]]:
    """Read every file of one pick, so the pick is submitted as a single upload."""
    return [(f.name, await f.read()) for f in files]


def register_pages(context: AppContext) -> None:
    """Register the chat page, rendering from ``context``."""

    @ui.page("/")
    def chat_page() -> None:
        ui.add_head_html(CUSTOM_CSS)
        dirty = {"value": True}

        def mark_dirty() -> None:
            dirty["value"] = True

        context.add_listener(mark_dirty)
        ui.context.client.on_disconnect(lambda: context.remove_listener(mark_dirty))

        def render_message(msg: Message) -> None:
            is_user = msg.role == "user"
            bubble = "message-user" if is_user else "message-assistant"
            if msg.error:
                bubble = "message-error"
            with ui.row().classes(f"w-full {'justify-end' if is_user else 'justify-start'}"):
                with ui.column().classes("max-w-[70%] gap-1"):
                    with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                        ui.markdown(msg.content).classes("text-sm")
                    ui.label(msg.timestamp.strftime("%I:%M %p")).classes(
                        "text-[10px] text-gray-400"
                    )

        @ui.refreshable
        def session_list() -> None:
            store = context.sessions
            for index, session in enumerate(store.sessions):
                active = index == store.active_index
                with ui.row().classes(
                    f"w-full items-center justify-between px-2 py-1 rounded "
                    f"{'bg-indigo-100' if active else ''}"
                ):
                    ui.label(session.title).classes("text-sm truncate cursor-pointer").on(
                        "click", lambda _e, i=index: switch_session(i)
                    )
                    ui.button(
                        icon="delete", on_click=lambda _e, i=index: delete_session(i)
                    ).props("flat dense round size=sm")

        @ui.refreshable
        def message_list() -> None:
            if not context.sessions.messages:
                with ui.column().classes("w-full h-64 items-center justify-center"):
                    ui.icon("forum").classes("text-5xl text-gray-300")
                    ui.label("Ask a question about your documents").classes("text-gray-400")
                return
            for msg in context.sessions.messages:
                render_message(msg)
            if context.chat.busy:
                ui.spinner("dots").classes("text-indigo-500")

        @ui.refreshable
        def status_bar() -> None:
            state = context.connectivity
            if state.status is Connectivity.DISCONNECTED:
                with ui.row().classes("w-full bg-red-100 text-red-800 px-4 py-2 text-sm"):
                    ui.icon("error_outline")
                    ui.label(f"API unavailable: {state.reason}. Retrying automatically...")
            elif state.status is Connectivity.CONNECTED:
                documents = state.health.document_total if state.health else 0
                mode = "Demo mode" if context.config.demo_mode else f"{documents} documents"
                ui.label(mode).classes("px-4 py-1 text-xs text-gray-500")

        @ui.refreshable
        def upload_progress() -> None:
            batch = context.batch
            if batch is None or batch.finished:
                return
            with ui.column().classes("w-full px-4 py-2 gap-1"):
                ui.linear_progress(value=batch.overall_progress / 100, show_value=False)
                for record in batch.files:
                    ui.label(f"{record.name}: {STATUS_TEXT[record.status]}").classes(
                        "text-xs text-gray-600"
                    )

        def refresh_all() -> None:
            dirty["value"] = False
            session_list.refresh()
            message_list.refresh()
            status_bar.refresh()
            upload_progress.refresh()
            send_btn.set_enabled(
                not context.chat.busy
                and context.connectivity.status is not Connectivity.DISCONNECTED
            )

        def switch_session(index: int) -> None:
            context.sessions.switch_active(index)
            refresh_all()

        def delete_session(index: int) -> None:
            if not context.sessions.delete_session(index):
                ui.notify("The last chat cannot be deleted", type="warning")
            refresh_all()

        def new_chat() -> None:
            context.sessions.create_session()
            refresh_all()

        async def send_message() -> None:
            text = input_field.value or ""
            input_field.value = ""
            try:
                turn = await context.send_message(text)
            except ChatRejectedError as e:
                if text.strip():
                    input_field.value = text
                    ui.notify(str(e), type="warning")
                return
            finally:
                refresh_all()
            if not turn.ok:
                ui.notify(turn.error, type="negative")

        async def handle_upload(e: events.MultiUploadEventArguments) -> None:
            candidates = await read_picked_files(e.files)
            uploader.reset()
            await context.upload(candidates)
            refresh_all()

        async def clear_documents() -> None:
            await context.clear_documents()
            refresh_all()

        # === UI Layout ===
        with ui.row().classes("w-full h-screen no-wrap gap-0"):
            with ui.column().classes("w-64 h-full bg-white border-r p-3 gap-2"):
                ui.button("New chat", icon="add", on_click=new_chat).classes("w-full")
                session_list()
                ui.space()
                uploader = ui.upload(
                    label="Upload PDFs", multiple=True, auto_upload=True, on_multi_upload=handle_upload
                ).props("accept=.pdf flat bordered").classes("w-full")
                ui.button("Clear documents", icon="delete_sweep", on_click=clear_documents).props(
                    "flat color=negative"
                ).classes("w-full")

            with ui.column().classes("flex-grow h-full gap-0"):
                status_bar()
                upload_progress()
                with ui.scroll_area().classes("flex-grow w-full bg-gray-50"):
                    with ui.column().classes("w-full p-5 gap-4"):
                        message_list()
                with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
                    input_field = (
                        ui.textarea(placeholder="Ask about your documents...")
                        .props("autogrow outlined dense rows=1")
                        .classes("flex-grow")
                        .on("keydown.enter.prevent", send_message)
                    )
                    send_btn = ui.button(icon="send", on_click=send_message).props(
                        "round unelevated color=indigo"
                    )

        ui.timer(0.5, lambda: refresh_all() if dirty["value"] else None)
