"""Streamlit views. Everything here renders; behaviour lives in the tasker services."""
