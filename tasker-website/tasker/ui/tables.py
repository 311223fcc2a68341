from __future__ import annotations

from typing import List

import pandas as pd
import plotly.express as px

from tasker.models import PRIORITY_LABELS, STATUS_LABELS, STATUSES, Task
from tasker.task_detail import progress

TASK_COLUMNS = ["title", "status", "priority", "assigned_to", "due_date", "labels", "subtasks", "checklist"]


def tasks_to_df(tasks: List[Task]) -> pd.DataFrame:
    if not tasks:
        return pd.DataFrame(columns=TASK_COLUMNS)
    rows = []
    for t in tasks:
        sub_done, sub_total = progress(t.subtasks)
        chk_done, chk_total = progress(t.checklists)
        rows.append(
            {
                "title": t.title,
                "status": STATUS_LABELS.get(t.status, t.status),
                "priority": PRIORITY_LABELS.get(t.priority, t.priority),
                "assigned_to": t.assigned_to or "",
                "due_date": t.due_date,
                "labels": ", ".join(t.labels),
                "subtasks": f"{sub_done}/{sub_total}",
                "checklist": f"{chk_done}/{chk_total}",
            }
        )
    df = pd.DataFrame(rows, columns=TASK_COLUMNS)
    df["due_date"] = pd.to_datetime(df["due_date"], errors="coerce").dt.date
    return df


def status_chart(tasks: List[Task]):
    counts = {STATUS_LABELS[s]: 0 for s in STATUSES}
    for t in tasks:
        label = STATUS_LABELS.get(t.status)
        if label:
            counts[label] += 1
    df = pd.DataFrame({"status": list(counts.keys()), "tasks": list(counts.values())})
    fig = px.bar(df, x="status", y="tasks", color="status", text="tasks")
    fig.update_layout(showlegend=False, height=260, margin=dict(l=10, r=10, t=10, b=10))
    return fig
