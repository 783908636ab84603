import logging

from qdrant_client import QdrantClient

from qdrant_client.http.models import (
    Distance,
    VectorParams,
    PayloadSchemaType,
)

from docbrief.config import (
    QDRANT_URL,
    QDRANT_API_KEY,
    QDRANT_COLLECTION,
)

logger = logging.getLogger(__name__)


def build_client(url: str = QDRANT_URL, api_key: str = QDRANT_API_KEY) -> QdrantClient:

    if url == ":memory:":
        return QdrantClient(location=":memory:")

    return QdrantClient(
        url=url,
        api_key=api_key,
        timeout=60.0,
    )


class QdrantVectorDB:
    """
    Qdrant connection plus collection bootstrap.

    The collection uses cosine distance and carries a keyword payload
    index on ``document_id`` for filtered search and delete.
    """

    def __init__(
        self,
        dim: int,
        collection: str = QDRANT_COLLECTION,
        client: QdrantClient = None,
    ):

        self._dim = dim

        self.client = client or build_client()

        self.collection = collection

        self._ensure_collection()

        logger.info(
            "Qdrant client initialized",
            extra={
                "collection": self.collection,
                "dimension": dim,
            },
        )


    def _ensure_collection(self):

        collections = self.client.get_collections().collections

        exists = any(
            c.name == self.collection
            for c in collections
        )

        if not exists:

            self.client.create_collection(
                collection_name=self.collection,
                vectors_config=VectorParams(
                    size=self._dim,
                    distance=Distance.COSINE,
                ),
            )

            logger.info(
                "Qdrant collection created",
                extra={"collection": self.collection},
            )

        try:

            self.client.create_payload_index(
                collection_name=self.collection,
                field_name="document_id",
                field_schema=PayloadSchemaType.KEYWORD,
            )

        except Exception as e:
            # Qdrant rejects re-creating an existing index
            logger.debug(
                "Payload index already exists or skipped",
                extra={"error": str(e)},
            )
