from bson import ObjectId
from datetime import datetime

def serialize_doc(doc: dict) -> dict:
    if not doc:
        return doc

    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))

    for k, v in doc.items():
        if isinstance(v, ObjectId):
            doc[k] = str(v)
        elif isinstance(v, datetime):
            doc[k] = v.isoformat()
    return doc


def serialize_docs(docs):
    return [serialize_doc(d) for d in docs]


def id_filter(value: str) -> dict:
    # ids arrive as strings; documents may be keyed by string or ObjectId
    ids = [value]
    if ObjectId.is_valid(value):
        ids.append(ObjectId(value))
    return {"_id": {"$in": ids}}
