"""
History log routes (list, note, delete, clear, re-translate)
"""
import asyncio

from flask import Blueprint, request, jsonify


def create_history_blueprint(services):
    """
    Create and configure the history blueprint

    Args:
        services: PeerServices instance
    """
    bp = Blueprint('history', __name__)
    history = services.history

    @bp.route('/api/history', methods=['GET'])
    def list_history():
        entries = asyncio.run(history.entries())
        return jsonify({"history": [entry.to_dict() for entry in entries], "count": len(entries)})

    @bp.route('/api/history', methods=['DELETE'])
    def clear_history():
        asyncio.run(history.clear())
        return jsonify({"status": "cleared"})

    @bp.route('/api/history/<int:timestamp>', methods=['DELETE'])
    def delete_entry(timestamp):
        if not asyncio.run(history.delete(timestamp)):
            return jsonify({"error": f"No history entry {timestamp}"}), 404
        return jsonify({"status": "deleted", "timestamp": timestamp})

    @bp.route('/api/history/<int:timestamp>', methods=['PATCH'])
    def edit_note(timestamp):
        data = request.get_json(silent=True) or {}
        note = data.get('note')
        if note is not None and not isinstance(note, str):
            return jsonify({"error": "Field 'note' must be a string"}), 400
        entry = asyncio.run(history.set_note(timestamp, note or ""))
        if entry is None:
            return jsonify({"error": f"No history entry {timestamp}"}), 404
        return jsonify(entry.to_dict())

    @bp.route('/api/history/<int:timestamp>/translate', methods=['POST'])
    def retranslate_entry(timestamp):
        entry = asyncio.run(services.retranslate(timestamp))
        if entry is None:
            return jsonify({"error": f"No history entry {timestamp}"}), 404
        return jsonify(entry.to_dict())

    return bp
