import pytest

from src.core.state_store import MapStateStore
from src.data.catalog import CountryCatalog

SAMPLE_SVG = """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <title>Test map</title>
  <path id="us" d="M0 0h1v1z"><title>United States</title></path>
  <path id="ca" d="M0 0h1v1z"><title>Canada</title></path>
  <path id="mx" d="M0 0h1v1z"><title>Mexico</title></path>
  <path id="gb" d="M0 0h1v1z"><title>United Kingdom</title></path>
  <path id="fr" d="M0 0h1v1z"><title>France</title></path>
  <path id="de" d="M0 0h1v1z"><title>Germany</title></path>
  <path id="es" d="M0 0h1v1z"><title>Spain</title></path>
  <path id="no" d="M0 0h1v1z"><title>Norway</title></path>
  <path id="ci" d="M0 0h1v1z"><title>Côte d'Ivoire</title></path>
  <path id="cn" d="M0 0h1v1z"><title>China</title></path>
  <path id="jp" d="M0 0h1v1z"><title>Japan</title></path>
  <path id="xk" d="M0 0h1v1z"><title>Kosova</title></path>
  <g id="ps">
    <path d="M0 0h1v1z"><title>West Bank</title></path>
    <path d="M0 0h1v1z"><title>Gaza Strip</title></path>
  </g>
  <g id="cnx"><path d="M0 0h1v1z"><title>Hainan</title></path></g>
  <path id="aq" d="M0 0h1v1z"/>
  <path id="zz" d="M0 0h1v1z"><title>   </title></path>
</svg>
"""

SAMPLE_IDS = ('CA', 'CI', 'CN', 'DE', 'ES', 'FR', 'GB', 'JP', 'MX', 'NO', 'PS', 'US', 'XK')


@pytest.fixture
def svg_text():
    return SAMPLE_SVG


@pytest.fixture
def catalog():
    return CountryCatalog.load_from_document(SAMPLE_SVG)


@pytest.fixture
def store(catalog):
    return MapStateStore(catalog)


@pytest.fixture
def events(store):
    """Count change notifications emitted by the store."""
    received = []
    store.subscribe(lambda: received.append(1))
    return received
