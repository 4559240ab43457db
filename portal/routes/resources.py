from flask import Blueprint, jsonify, request

from portal import firestore_dao as dao
from portal.decorators import admin_required, profile_required
from portal.models import Resource

bp = Blueprint('resources', __name__, url_prefix='/resources')


@bp.route('')
@profile_required
def list_resources():
    """Resources matching the filters, and every category for the filter menu."""
    category = request.args.get('category') or None
    resource_type = request.args.get('type') or None
    everything = dao.get_resources()
    if category or resource_type:
        resources = dao.get_resources(category=category, resource_type=resource_type)
    else:
        resources = everything
    categories = sorted({r.category for r in everything if r.category})
    return jsonify({'resources': [r.to_api() for r in resources], 'categories': categories})


@bp.route('', methods=['POST'])
@admin_required
def create_resource():
    resource = Resource.from_api(request.get_json(silent=True) or {})
    resource.id = None
    resource.created_at = None
    dao.create_resource(resource)
    return jsonify({'success': True, 'resource': resource.to_api()}), 201


@bp.route('/<resource_id>', methods=['DELETE'])
@admin_required
def delete_resource(resource_id):
    if not dao.get_resource(resource_id):
        return jsonify({'error': 'Resource not found'}), 404
    dao.delete_resource(resource_id)
    return jsonify({'success': True})
