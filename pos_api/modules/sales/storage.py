"""
Almacenes de facturas en PDF.

Un guardado solo se considera exitoso cuando el archivo puede verificarse
en el destino con el tamaño esperado.
"""
from abc import ABC, abstractmethod
from io import BytesIO
import logging
import os
import tempfile

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from pos_api.common.exceptions import StorageError, NotFoundError

logger = logging.getLogger(__name__)

# Errores de red del cliente de MinIO además de las respuestas S3
UNAVAILABLE_ERRORS = (S3Error, HTTPError, OSError)


class InvoiceStorage(ABC):
    """Destino de los PDFs de factura"""

    @abstractmethod
    def save(self, name: str, data: bytes) -> str:
        """Guardar y confirmar; devuelve la referencia del archivo"""

    @abstractmethod
    def load(self, name: str) -> bytes:
        ...

    @abstractmethod
    def exists(self, name: str) -> bool:
        ...


class LocalInvoiceStorage(InvoiceStorage):
    """Facturas en un directorio del servidor (equivalente a la carpeta facturas/)"""

    def __init__(self, directory: str):
        self.directory = str(directory)

    def _path(self, name: str) -> str:
        if os.path.basename(name) != name:
            raise StorageError(f"Nombre de factura inválido: {name}")
        return os.path.join(self.directory, name)

    def save(self, name: str, data: bytes) -> str:
        path = self._path(name)
        try:
            os.makedirs(self.directory, exist_ok=True)
            # Escribir a un temporal y reemplazar para no dejar PDFs a medias
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_path, path)
            finally:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)

            if os.path.getsize(path) != len(data):
                raise StorageError(f"La factura {name} quedó incompleta en disco")
        except OSError as e:
            logger.error(f"Error guardando factura {name}: {e}")
            raise StorageError(f"No se pudo guardar la factura {name}: {e}", cause=e)

        logger.info(f"Factura guardada en {path}")
        return name

    def load(self, name: str) -> bytes:
        path = self._path(name)
        if not os.path.exists(path):
            raise NotFoundError("Factura no encontrada")
        with open(path, "rb") as fh:
            return fh.read()

    def exists(self, name: str) -> bool:
        return os.path.exists(self._path(name))


class MinIOInvoiceStorage(InvoiceStorage):
    """Facturas como objetos en un bucket de MinIO"""

    def __init__(self, client: Minio, bucket_name: str, prefix: str = ""):
        self.client = client
        self.bucket_name = bucket_name
        self.prefix = prefix.strip("/")
        self._ensure_bucket_exists()

    def _ensure_bucket_exists(self):
        try:
            if not self.client.bucket_exists(self.bucket_name):
                self.client.make_bucket(self.bucket_name)
                logger.info(f"Created MinIO bucket: {self.bucket_name}")
        except UNAVAILABLE_ERRORS as e:
            logger.error(f"MinIO bucket setup error: {e}")
            raise StorageError("Almacén de facturas no disponible", cause=e)

    def _key(self, name: str) -> str:
        return f"{self.prefix}/{name}" if self.prefix else name

    def save(self, name: str, data: bytes) -> str:
        key = self._key(name)
        try:
            self.client.put_object(
                self.bucket_name,
                key,
                BytesIO(data),
                length=len(data),
                content_type="application/pdf"
            )
            stat = self.client.stat_object(self.bucket_name, key)
        except UNAVAILABLE_ERRORS as e:
            logger.error(f"MinIO upload error for {key}: {e}")
            raise StorageError(f"No se pudo guardar la factura {name}: {e}", cause=e)

        if stat.size != len(data):
            raise StorageError(f"La factura {name} quedó incompleta en el almacén")

        logger.info(f"Factura subida a MinIO: {self.bucket_name}/{key}")
        return name

    def load(self, name: str) -> bytes:
        response = None
        try:
            response = self.client.get_object(self.bucket_name, self._key(name))
            return response.read()
        except S3Error as e:
            if e.code == "NoSuchKey":
                raise NotFoundError("Factura no encontrada")
            raise StorageError(f"No se pudo leer la factura {name}: {e}", cause=e)
        except (HTTPError, OSError) as e:
            logger.error(f"MinIO download error for {name}: {e}")
            raise StorageError(f"No se pudo leer la factura {name}: {e}", cause=e)
        finally:
            if response is not None:
                response.close()
                response.release_conn()

    def exists(self, name: str) -> bool:
        try:
            self.client.stat_object(self.bucket_name, self._key(name))
            return True
        except S3Error:
            return False
        except (HTTPError, OSError) as e:
            raise StorageError(f"Almacén de facturas no disponible: {e}", cause=e)


def build_invoice_storage(config=None) -> InvoiceStorage:
    """Crear el almacén indicado por INVOICE_STORAGE (local | minio)"""
    if config is None:
        from pos_api.core.config import settings as config

    if config.INVOICE_STORAGE == "minio":
        client = Minio(
            config.minio_endpoint,
            access_key=config.MINIO_ACCESS_KEY,
            secret_key=config.MINIO_SECRET_KEY,
            secure=config.MINIO_USE_SSL
        )
        return MinIOInvoiceStorage(client, config.MINIO_BUCKET_NAME, config.MINIO_INVOICE_PREFIX)

    return LocalInvoiceStorage(config.INVOICE_DIR)
