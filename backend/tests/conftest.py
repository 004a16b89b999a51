import io

import pytest
from PIL import Image


@pytest.fixture
def png_bytes():
    """A small white PNG, enough for PIL to open."""
    buffer = io.BytesIO()
    Image.new('RGB', (40, 20), 'white').save(buffer, format='PNG')
    return buffer.getvalue()
