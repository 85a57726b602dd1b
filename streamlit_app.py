"""Launch with: streamlit run streamlit_app.py"""

from lhc.web import run_app

run_app()
