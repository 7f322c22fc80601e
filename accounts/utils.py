# accounts/utils.py


def clean_document(value):
    """Quita puntos, guiones y espacios de un número de documento."""
    if value is None:
        return ''
    return str(value).replace('.', '').replace('-', '').replace(' ', '').strip()


def validar_documento(value, min_len=5, max_len=15, digits_only=True):
    """
    Valida un número de documento (CC, CE, NIT, Pasaporte).
    - Longitud entre min_len y max_len tras limpiar.
    - Solo dígitos cuando digits_only (clientes); proveedores permiten alfanumérico.
    """
    doc = clean_document(value)
    if not (min_len <= len(doc) <= max_len):
        return False
    if digits_only:
        return doc.isdigit()
    return doc.isalnum()
