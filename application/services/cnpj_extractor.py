# application/services/cnpj_extractor.py
from __future__ import annotations
import logging
from pathlib import Path
import xml.etree.ElementTree as ET

logger = logging.getLogger(__name__)


def _local(tag: object) -> str:
    # "{http://www.portalfiscal.inf.br/nfe}emit" -> "emit"
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def extract_cnpj(fp: Path) -> str | None:
    """
    Lee el XML y devuelve el CNPJ del emitente: texto del primer hijo <CNPJ>
    del primer elemento <emit> (en orden de documento, sin tener en cuenta el namespace).

    Devuelve None si falta <emit> o <CNPJ>, si el texto está vacío, si el XML
    está mal formado o si no se puede leer el fichero. No lanza excepciones.
    """
    try:
        root = ET.parse(fp).getroot()
    except ET.ParseError:
        logger.error("Error al leer el XML para obtener el CNPJ: XML mal formado (%s)", fp)
        return None
    except FileNotFoundError:
        logger.error("Error al leer el XML para obtener el CNPJ: fichero no encontrado (%s)", fp)
        return None
    except Exception:
        logger.exception("Error al leer el XML para obtener el CNPJ (%s)", fp)
        return None

    emit = next((el for el in root.iter() if _local(el.tag) == "emit"), None)
    if emit is None:
        return None
    cnpj = next((child for child in emit if _local(child.tag) == "CNPJ"), None)
    if cnpj is None:
        return None
    value = (cnpj.text or "").strip()
    return value or None
