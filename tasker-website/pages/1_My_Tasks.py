from tasker.ui.components import finish_page, start_page
from tasker.ui.tasks_view import render_my_tasks

ctx = start_page("Team Tasker · My Tasks", page_icon="✅")

render_my_tasks(ctx)

finish_page(ctx)
