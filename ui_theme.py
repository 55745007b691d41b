import streamlit as st


def inject_global_css() -> None:
    """Base CSS shared by every page (dark mode + artwork cards)."""
    st.markdown(
        """
        <style>
        /* ============================
           Global layout and colours
        ============================ */
        .stApp {
            background-color: #111111;
            color: #f5f5f5;
        }

        div.block-container {
            max-width: 1200px;
            padding-top: 1.5rem;
            padding-bottom: 3rem;
        }

        section[data-testid="stSidebar"] {
            background-color: #181818 !important;
        }

        div[data-testid="stMarkdownContainer"] a {
            color: #e4002b !important;
            text-decoration: none;
        }
        div[data-testid="stMarkdownContainer"] a:hover {
            text-decoration: underline;
        }

        /* ============================
           Artwork cards
        ============================ */
        .met-card {
            background-color: #181818;
            border-radius: 12px;
            padding: 0.75rem 0.75rem 0.9rem 0.75rem;
            box-shadow: 0 2px 8px rgba(0,0,0,0.4);
            border: 1px solid #262626;
            margin-bottom: 1rem;
        }
        .met-card-title {
            font-size: 1rem;
            font-weight: 600;
            margin-top: 0.35rem;
            margin-bottom: 0.1rem;
        }
        .met-card-caption { font-size: 0.9rem; color: #c7c7c7; margin-bottom: 0.25rem; }

        .met-summary-pill {
            display: inline-block;
            padding: 4px 10px;
            border-radius: 999px;
            background-color: #262626;
            color: #f5f5f5;
            font-size: 0.85rem;
            margin-top: 0.35rem;
            margin-bottom: 1.0rem;
        }
        .met-summary-pill strong { color: #e4002b; }

        /* ============================
           Footer
        ============================ */
        .met-footer {
            margin-top: 2.5rem;
            padding-top: 0.75rem;
            border-top: 1px solid #262626;
            font-size: 0.8rem;
            color: #aaaaaa;
            text-align: center;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def show_global_footer() -> None:
    st.markdown(
        """
        <div class="met-footer">
            Met Timeline Explorer — prototype created for study purposes.<br>
            Data & images provided by The Metropolitan Museum of Art Collection API.
        </div>
        """,
        unsafe_allow_html=True,
    )
