import numpy as np
import pandas as pd
import plotly.graph_objects as go

from games_explorer import settings
from games_explorer.filters import Session

# =========================================================
#                       THEME TOKENS
# =========================================================
THEME = {"bg": "#0b0f19", "fg": "#d6d6d6", "panel": "#111827", "template": "plotly_dark"}
POS_COLORSCALE = [[0.0, "#d73027"], [1.0, "#4575b4"]]  # low positive% -> red, high -> blue
NO_DATA_COLOR = "#7f8c8d"
AVG_LINE_COLOR = "#64acff"
BAR_COLOR, BAR_EDGE = "#f0c28f", "#a06e3a"


def apply_theme(fig):
    fig.update_layout(template=THEME["template"], paper_bgcolor=THEME["panel"], plot_bgcolor=THEME["panel"],
                      font_color=THEME["fg"], margin=dict(l=10, r=10, t=45, b=10))
    return fig


def empty_figure(title):
    f = go.Figure(); f.update_layout(title=title)
    return apply_theme(f)


VIEW_TITLES = {
    "timeline": "Release timeline (drag to select dates)",
    "timeseries": "Video Game Releases and Player Ratings Over Time",
    "histogram": "Price Distribution",
    "scatter": "Release Date vs Price",
}


def placeholder(view):
    return empty_figure(VIEW_TITLES.get(view, view))


def _brush(x0, x1):
    return dict(type="rect", xref="x", yref="paper", x0=x0, x1=x1, y0=0, y1=1)


def radius_for(reviews, max_reviews):
    """sqrt scale from [0, max_reviews] to the configured marker radius range."""
    r_min, r_max = settings.SCATTER_RADIUS
    max_reviews = max_reviews or 1
    frac = np.sqrt(np.clip(np.asarray(reviews, dtype=float), 0, None) / max_reviews)
    return r_min + (r_max - r_min) * np.clip(frac, 0, 1)


# =========================================================
#                    BUILD FIGURES
# =========================================================
def fig_timeline(records: pd.DataFrame, session: Session):
    dates = records["release_date"].dropna()
    fig = go.Figure(go.Scattergl(x=dates, y=np.zeros(len(dates)), mode="markers",
                                 marker=dict(size=4, color=AVG_LINE_COLOR, opacity=0.4),
                                 hoverinfo="skip", showlegend=False))
    fig.update_layout(title=VIEW_TITLES["timeline"], dragmode="select", selectdirection="h",
                      height=170, uirevision="timeline", xaxis_title="Release Date")
    fig.update_yaxes(visible=False, range=[-1, 1], fixedrange=True)

    time_range = session.filters.time_range
    if not dates.empty:
        lo, hi = dates.min(), dates.max()
        fig.update_xaxes(range=[lo, hi])
        if time_range is not None:
            t0, t1 = max(time_range[0], lo), min(time_range[1], hi)
            # restore only when the selection overlaps the domain
            if t1 >= lo and t0 <= hi and t0 <= t1:
                fig.update_layout(selections=[_brush(t0, t1)])
    return apply_theme(fig)


def fig_timeseries(rows, session: Session, genres=()):
    years = [r.year for r in rows]
    hidden = session.hidden_genres
    fig = go.Figure()
    # one trace per genre, always, so legend entries and trace indices are stable
    for g in genres:
        fig.add_trace(go.Scatter(x=years, y=[r.counts.get(g, 0) for r in rows], name=g,
                                 mode="lines", stackgroup="releases", line=dict(width=0.5, shape="spline"),
                                 visible="legendonly" if g in hidden else True,
                                 hovertemplate=f"{g}: %{{y}}<extra></extra>"))
    fig.add_trace(go.Scatter(
        x=years, y=[r.avg_pos_ratio for r in rows], yaxis="y2", name="Avg positive %",
        mode="lines+markers", connectgaps=False,
        line=dict(color=AVG_LINE_COLOR, width=2, shape="spline"),
        marker=dict(size=8, color=AVG_LINE_COLOR, line=dict(color="#0b2a44", width=1)),
        customdata=[[r.year, r.record_count] for r in rows],
        hovertemplate="%{customdata[1]} releases • avg positive %{y:.1%} (%{customdata[0]})<extra></extra>",
    ))
    fig.update_layout(title=VIEW_TITLES["timeseries"],
                      xaxis=dict(title="Release Year", tickformat="d"),
                      yaxis=dict(title="Number of Releases", rangemode="tozero"),
                      yaxis2=dict(title="Average Positive Reviews (%)", overlaying="y", side="right",
                                  range=[0, 1], tickformat=".0%", showgrid=False),
                      legend=dict(x=1.08, y=1))
    fig = apply_theme(fig)
    fig.update_layout(margin=dict(l=10, r=220, t=45, b=10))
    return fig


def fig_histogram(bins, session: Session):
    lower = np.array([b.lower for b in bins]); upper = np.array([b.upper for b in bins])
    fig = go.Figure(go.Bar(
        x=(lower + upper) / 2, y=[b.count for b in bins], width=(upper - lower) * 0.92,
        marker=dict(color=BAR_COLOR, line=dict(color=BAR_EDGE, width=1)),
        customdata=np.stack([lower, upper], axis=-1) if len(bins) else None,
        hovertemplate="%{y} games<br>$%{customdata[0]:,.2f} – $%{customdata[1]:,.2f}<extra></extra>",
        showlegend=False,
    ))
    fig.update_layout(title=VIEW_TITLES["histogram"], dragmode="select", selectdirection="h",
                      uirevision="histogram", bargap=0,
                      xaxis=dict(title="Price (USD)", tickprefix="$"), yaxis=dict(title="Count"))
    if len(bins):
        fig.update_xaxes(range=[float(lower[0]), float(upper[-1])])
    price_range = session.filters.price_range
    if price_range is not None:
        fig.update_layout(selections=[_brush(*price_range)])
    return apply_theme(fig)


def fig_scatter(subset: pd.DataFrame, session: Session):
    pts = subset[subset["release_date"].notna() & np.isfinite(subset["price"])]
    time_range = session.filters.time_range
    if time_range is not None:
        x_range = list(time_range)
    else:
        last = subset["release_date"].max()
        x_range = [pd.Timestamp(settings.SCATTER_START), last if pd.notna(last) else pd.Timestamp.today()]

    max_reviews = pts["reviews"].max() if not pts.empty else 0
    sizes = 2 * radius_for(pts["reviews"], max_reviews)
    has_pos = pts["pos_ratio"].notna().to_numpy()

    def hover_rows(df):
        pos_txt = [
            "Positive %: N/A" if pd.isna(r) else
            f"{'?' if pd.isna(p) else int(p)} positive • {'?' if pd.isna(n) else int(n)} negative • {r:.1%} positive"
            for r, p, n in zip(df["pos_ratio"], df["positive"], df["negative"])
        ]
        return np.stack([df["name"].astype(str), df["reviews"].astype(str), pos_txt], axis=-1) if len(df) else None

    hover = "<b>%{customdata[0]}</b><br>$%{y:,.2f} • %{customdata[1]} reviews<br>%{customdata[2]}<extra></extra>"
    fig = go.Figure()
    with_data, without = pts[has_pos], pts[~has_pos]
    fig.add_trace(go.Scattergl(
        x=with_data["release_date"], y=with_data["price"], mode="markers", name="Review sentiment",
        marker=dict(size=sizes[has_pos], color=with_data["pos_ratio"], colorscale=POS_COLORSCALE,
                    cmin=0, cmax=1, opacity=0.85, line=dict(color="#111", width=0.8),
                    colorbar=dict(title="Positive %", tickformat=".0%")),
        customdata=hover_rows(with_data), hovertemplate=hover,
    ))
    fig.add_trace(go.Scattergl(
        x=without["release_date"], y=without["price"], mode="markers", name="No review data",
        marker=dict(size=sizes[~has_pos], color=NO_DATA_COLOR, opacity=0.85, line=dict(color="#111", width=0.8)),
        customdata=hover_rows(without), hovertemplate=hover,
    ))
    y_max = float(pts["price"].max()) if not pts.empty else 1.0
    fig.update_layout(title=VIEW_TITLES["scatter"],
                      xaxis=dict(title="Release Date", range=x_range),
                      yaxis=dict(title="Price (USD)", range=[-2, y_max * 1.05 + 1]),
                      legend=dict(orientation="h", y=-0.2))
    return apply_theme(fig)
