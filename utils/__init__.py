from sqlalchemy.inspection import inspect

READ_ONLY = {"id", "created_at", "updated_at"}


def sa_update_from_dict(obj, data: dict, allow_fields=None):
    """อัปเดตค่าใน obj จาก dict (จำกัดฟิลด์ที่อนุญาตได้, ไม่แตะ id/timestamps)"""
    columns = {c.key for c in inspect(obj.__class__).columns}
    if allow_fields is None:
        allow_fields = data.keys()
    for k in allow_fields:
        if k in data and k in columns and k not in READ_ONLY:
            setattr(obj, k, data[k])
    return obj
