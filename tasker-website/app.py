from tasker.ui.components import finish_page, start_page
from tasker.ui.projects_view import render_projects_page

ctx = start_page("Team Tasker · Projects")

render_projects_page(ctx)

finish_page(ctx)
