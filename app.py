import logging
import sys

from dash import Dash, dcc, html, ctx
from dash import Input, Output, State, no_update

from games_explorer import settings
from games_explorer.figures import (THEME, fig_histogram, fig_scatter, fig_timeline,
                                    fig_timeseries, placeholder)
from games_explorer.filters import ALL, Session
from games_explorer.interactions import (genre_event, histogram_event, legend_events,
                                         reset_event, timeline_event, year_click_event)
from games_explorer.loader import DatasetLoadError, load_catalog
from games_explorer.orchestrator import VIEW_ORDER, DashboardSession, RedrawOrchestrator


def setup_logging(log_level: str = settings.LOG_LEVEL):
    logging.basicConfig(level=getattr(logging, log_level.upper(), logging.INFO),
                        format=settings.LOG_FORMAT, handlers=[logging.StreamHandler(sys.stdout)])


setup_logging()
logger = logging.getLogger("app")

# =========================================================
#                      DATA LOADING
# =========================================================
try:
    catalog = load_catalog()
    load_error = None
    logger.info(f"Data loaded successfully: {len(catalog)} games, {len(catalog.genres)} genres")
except DatasetLoadError as e:
    catalog = None
    load_error = str(e)
    logger.error(f"Dataset load failed, dashboard disabled: {e}")

# =========================================================
#                    HELPERS
# =========================================================
def genre_options(genres):
    return [{"label": "All", "value": ALL}] + [{"label": g, "value": g} for g in genres]


def filter_badges(session: Session):
    f = session.filters
    badges = []
    if f.genre != ALL:
        badges.append(f"Genre: {f.genre}")
    if f.time_range:
        t0, t1 = f.time_range
        badges.append(f"Date: {t0:%Y-%m-%d} → {t1:%Y-%m-%d}")
    if f.price_range:
        p0, p1 = f.price_range
        badges.append(f"Price: ${p0:.2f} → ${p1:.2f}")
    return [html.Span(b, className="badge",
                      style={"marginRight": "6px", "padding": "2px 8px", "borderRadius": "999px",
                             "background": "rgba(100,172,255,.15)", "border": "1px solid rgba(100,172,255,.4)"})
            for b in badges]


def kpi_card(id_, label):
    return html.Div([
        html.Div(id=id_, style={"fontSize": "28px", "fontWeight": "700", "marginBottom": "4px"}),
        html.Div(label, style={"fontSize": "12px", "opacity": 0.8})
    ], style={"background": "rgba(255,255,255,0.04)", "padding": "14px", "borderRadius": "10px"})


def kpi_values(stats):
    count = f"{stats['count']:,}"
    pos = f"{stats['avg_pos_ratio']:.1%}" if stats["avg_pos_ratio"] is not None else "—"
    price = f"${stats['median_price']:.2f}" if stats["median_price"] is not None else "—"
    return count, pos, price


def events_for(trigger, triggered_props, payloads, session: Session, genres):
    """Interaction events for the component that fired the callback."""
    if trigger == "timeline":
        return [timeline_event(payloads.get("timeline"), session)]
    if trigger == "histogram":
        return [histogram_event(payloads.get("histogram"), session)]
    if trigger == "timeseries" and "timeseries.restyleData" in triggered_props:
        return legend_events(payloads.get("legend"), genres, session)
    if trigger == "timeseries":
        return [e for e in [year_click_event(payloads.get("year_click"))] if e is not None]
    if trigger == "genre":
        return [genre_event(payloads.get("genre"))]
    return [reset_event()]


def callback_outputs(dash_session: DashboardSession, views):
    if views is None:
        return (no_update,) * 10
    new = dash_session.session
    figures = [views[v] for v in VIEW_ORDER]
    return (new.to_dict(), *figures, *kpi_values(views["summary"]),
            filter_badges(new), new.filters.genre)

# =========================================================
#                       DASH APP (MAIN)
# =========================================================
app = Dash(__name__)
app.title = "Game Release Explorer"
server = app.server  # <- WSGI entrypoint for Gunicorn

page_style = {"backgroundColor": THEME["bg"], "color": THEME["fg"], "minHeight": "100vh", "padding": "12px",
              "fontFamily": "system-ui,-apple-system,Segoe UI,Roboto,Helvetica,Arial,sans-serif"}
title = html.H1("Game Release Explorer", style={"textAlign": "center", "fontWeight": 800, "letterSpacing": "1px"})

if catalog is None:
    app.layout = html.Div(id="page", style=page_style, children=[
        title,
        html.Div([html.H3("The game catalogue could not be loaded."),
                  html.P(load_error),
                  html.P("Check GAMES_DATA_SOURCE and restart the server.", style={"opacity": 0.8})],
                 id="load-error",
                 style={"background": "rgba(215,48,39,.15)", "border": "1px solid #d73027",
                        "borderRadius": "10px", "padding": "14px"}),
    ])
else:
    orchestrator = RedrawOrchestrator(
        catalog,
        renderers={
            "timeline": fig_timeline,
            "timeseries": lambda rows, s: fig_timeseries(rows, s, catalog.genres),
            "histogram": fig_histogram,
            "scatter": fig_scatter,
        },
        fallback=placeholder,
    )

    controls = html.Div(
        style={"display": "grid", "gridTemplateColumns": "1fr auto 2fr", "gap": "10px",
               "alignItems": "end", "padding": "10px 12px"},
        children=[
            html.Div([html.Label("Genre", style={"fontWeight": 700}),
                      dcc.Dropdown(id="genre", options=genre_options(catalog.genres), value=ALL,
                                   clearable=False, style={"width": "100%", "color": "#111"})]),
            html.Button("Reset filters", id="reset", n_clicks=0),
            html.Div(id="active-filters"),
        ],
    )

    app.layout = html.Div(
        id="page",
        style=page_style,
        children=[
            title,
            dcc.Store(id="session", storage_type="memory", data=Session().to_dict()),
            controls,
            html.Div(style={"display": "grid", "gridTemplateColumns": "repeat(3,1fr)", "gap": "12px"},
                     children=[kpi_card("kpi_count", "Games (current filters)"),
                               kpi_card("kpi_pos", "Avg positive reviews"),
                               kpi_card("kpi_price", "Median price")]),
            dcc.Graph(id="timeseries", style={"height": "420px", "marginTop": "12px"}),
            dcc.Graph(id="timeline", config={"displayModeBar": False}),
            html.Div(style={"display": "grid", "gridTemplateColumns": "2fr 1fr", "gap": "16px", "marginTop": "8px"},
                     children=[dcc.Graph(id="scatter", style={"height": "460px"}),
                               dcc.Graph(id="histogram", style={"height": "460px"})]),
        ]
    )

    # =========================================================
    #                  SINGLE UNIFIED CALLBACK
    # =========================================================
    @app.callback(
        Output("session", "data"),
        Output("timeline", "figure"), Output("timeseries", "figure"),
        Output("histogram", "figure"), Output("scatter", "figure"),
        Output("kpi_count", "children"), Output("kpi_pos", "children"), Output("kpi_price", "children"),
        Output("active-filters", "children"),
        Output("genre", "value"),
        Input("timeline", "selectedData"),
        Input("histogram", "selectedData"),
        Input("timeseries", "clickData"),
        Input("timeseries", "restyleData"),
        Input("genre", "value"),
        Input("reset", "n_clicks"),
        State("session", "data"),
    )
    def update_all(timeline_sel, histogram_sel, year_click, legend_restyle, genre, _reset, session_data):
        dash_session = DashboardSession(orchestrator, Session.from_dict(session_data))
        trigger = ctx.triggered_id
        if trigger is None:
            views = dash_session.redraw()
        else:
            payloads = {"timeline": timeline_sel, "histogram": histogram_sel, "year_click": year_click,
                        "legend": legend_restyle, "genre": genre}
            events = events_for(trigger, ctx.triggered_prop_ids, payloads, dash_session.session, catalog.genres)
            views = dash_session.dispatch(*events)
        return callback_outputs(dash_session, views)

# =========================================================
#                    LOCAL DEV ONLY
# =========================================================
if __name__ == "__main__":
    app.run(host=settings.HOST, port=settings.PORT, debug=settings.DEBUG)
