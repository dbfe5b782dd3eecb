"""
Photo Mosaic - Gallery Edition

Preprocess a gallery once with ``photo-mosaic preprocess``, then run:
    streamlit run streamlit_app.py
"""

from __future__ import annotations

import io
import time
from pathlib import Path

import numpy as np
import streamlit as st
from PIL import Image, ImageDraw

from photo_mosaic.catalogue import load_catalogue
from photo_mosaic.color_utils import METRICS
from photo_mosaic.compositor import MissingTileError, create_mosaic
from photo_mosaic.config import EDGE_POLICIES, MosaicConfig
from photo_mosaic.matcher import EmptyCatalogueError
from photo_mosaic.ratio import reduce_ratio

# -- Page config -------------------------------------------------------
st.set_page_config(
    page_title="Photo Mosaic",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="collapsed",
)

_DEFAULTS = MosaicConfig()

# -- CSS ---------------------------------------------------------------
st.markdown("""
<style>
    @import url('https://fonts.googleapis.com/css2?family=Cormorant+Garamond:ital,wght@0,300;0,400;1,300&family=Inter:wght@200;300;400&display=swap');

    .stApp {
        background-color: #faf9f6;
        color: #2a2a2a;
        font-family: 'Inter', 'Helvetica Neue', sans-serif;
    }
    .block-container {
        max-width: 1000px;
        padding-top: 3.5rem;
        padding-bottom: 4rem;
    }
    .gallery-title {
        font-family: 'Cormorant Garamond', 'Georgia', serif;
        font-size: 2.8rem;
        font-weight: 300;
        letter-spacing: 0.06em;
        text-align: center;
        color: #1a1a1a;
        border-bottom: 1px solid #1a1a1a;
        padding-bottom: 0.6rem;
        margin-bottom: 0.5rem;
    }
    .gallery-subtitle {
        font-size: 0.75rem;
        font-weight: 300;
        line-height: 1.8;
        margin-bottom: 3.5rem;
    }
    .slider-desc {
        font-family: 'Cormorant Garamond', 'Georgia', serif;
        font-size: 0.95rem;
        font-style: italic;
        color: #a0a09a;
    }
    .stButton > button, .stDownloadButton > button {
        background-color: #2a2a2a !important;
        color: #faf9f6 !important;
        border: 1px solid #2a2a2a !important;
        border-radius: 0px !important;
        letter-spacing: 0.10em;
        text-transform: uppercase;
        font-size: 0.6rem;
    }
    hr { border: none; border-top: 1px solid #e0ded8; margin: 2.5rem 0; }
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
    header {visibility: hidden;}
</style>
""", unsafe_allow_html=True)


# -- Helpers -----------------------------------------------------------

def _add_passepartout(img: Image.Image, border: int = 20) -> Image.Image:
    w, h = img.size
    bg = (250, 249, 246)
    canvas = Image.new("RGB", (w + border * 2, h + border * 2), bg)
    canvas.paste(img, (border, border))
    draw = ImageDraw.Draw(canvas)
    draw.rectangle(
        [border - 1, border - 1, border + w, border + h],
        outline=(224, 222, 216), width=1,
    )
    return canvas


# -- Title -------------------------------------------------------------
st.markdown(
    '<div class="gallery-title">Photo Mosaic</div>',
    unsafe_allow_html=True,
)
st.markdown(
    '<div class="gallery-subtitle">'
    "Point this app at a gallery folder preprocessed with "
    "<code>photo-mosaic preprocess</code> and upload a model image. The model "
    "is cut into small chunks of its own aspect ratio; each chunk is replaced "
    "by the photograph whose representative colour is the closest match. "
    "Only photographs sharing the model's aspect ratio take part."
    "</div>",
    unsafe_allow_html=True,
)

# -- Controls ----------------------------------------------------------
folder = Path(st.text_input("Preprocessed folder", "processed"))

ctrl1, ctrl2, ctrl3 = st.columns(3)
with ctrl1:
    chunk_size = st.slider("Chunk size (px)", 2, 64, _DEFAULTS.chunk_size)
    st.markdown(
        '<div class="slider-desc">'
        "Longest side of the model region replaced by one photograph. "
        "Smaller chunks give more tiles and a larger mosaic."
        "</div>",
        unsafe_allow_html=True,
    )
with ctrl2:
    metric = st.selectbox("Colour metric", METRICS, index=METRICS.index(_DEFAULTS.metric))
with ctrl3:
    edge_policy = st.selectbox(
        "Edges", EDGE_POLICIES, index=EDGE_POLICIES.index(_DEFAULTS.edge_policy),
    )

st.markdown("---")

# -- Upload ------------------------------------------------------------
uploaded = st.file_uploader(
    "Select model", type=sorted(e.lstrip(".") for e in _DEFAULTS.SUPPORTED_EXTENSIONS),
)

if uploaded is not None:
    try:
        catalogue = load_catalogue(folder, _DEFAULTS.metadata_filename)
    except (OSError, ValueError) as exc:
        st.error(f"Cannot read the catalogue in {folder}: {exc}")
        st.stop()

    try:
        with Image.open(io.BytesIO(uploaded.getvalue())) as img:
            model = np.array(img.convert("RGB"), dtype=np.uint8)
    except (OSError, Image.DecompressionBombError) as exc:
        st.error(f"Cannot read {uploaded.name}: {exc}")
        st.stop()
    h, w = model.shape[:2]
    ratio = reduce_ratio(w, h)

    m1, m2, m3 = st.columns(3)
    m1.metric("Model", f"{w}x{h}")
    m2.metric("Ratio", str(ratio))
    m3.metric("Matching pictures", len(catalogue.with_ratio(ratio)))

    cfg = MosaicConfig(chunk_size=chunk_size, metric=metric, edge_policy=edge_policy)
    with st.spinner("Composing ..."):
        t0 = time.perf_counter()
        try:
            mosaic = create_mosaic(model, catalogue, folder, cfg)
        except EmptyCatalogueError as exc:
            st.warning(str(exc))
            st.stop()
        except (MissingTileError, ValueError) as exc:
            st.error(str(exc))
            st.stop()
        elapsed = time.perf_counter() - t0

    st.image(_add_passepartout(mosaic), use_container_width=True)
    st.caption(f"{mosaic.width}x{mosaic.height} px, {elapsed:.1f} s")

    buf = io.BytesIO()
    mosaic.save(buf, format="PNG")
    st.download_button(
        "Download PNG",
        data=buf.getvalue(),
        file_name=f"{Path(uploaded.name).stem}_mosaic.png",
        mime="image/png",
    )
