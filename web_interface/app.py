#!/usr/bin/env python3
"""
HTTP binding for the Shared-Custody Vault
"""

import os

from flask import Flask, jsonify, request

from shared_custody.config import EngineConfig
from shared_custody.errors import (
    AlreadyConfirmed, AlreadyExecuted, CustodyError, InsufficientConfirmations,
    NotConfirmed, NotFound, ReentrantCall, Unauthorized
)
from shared_custody.host.environment import HostEnvironment
from shared_custody.host.identity import AttestedCaller
from shared_custody.vault import MultiSigVault

CALLER_HEADER = "X-Custody-Caller"

_CONFLICTS = (AlreadyConfirmed, AlreadyExecuted, InsufficientConfirmations, NotConfirmed, ReentrantCall)


def _status_for(error: CustodyError) -> int:
    if isinstance(error, Unauthorized):
        return 403
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, _CONFLICTS):
        return 409
    return 400


def create_app(host: HostEnvironment = None, config: EngineConfig = None) -> Flask:
    app = Flask(__name__)
    host = host or HostEnvironment()
    config = config or EngineConfig.from_env()

    # In-process registry of vault instances
    vaults = {}
    app.config['CUSTODY_HOST'] = host
    app.config['CUSTODY_VAULTS'] = vaults

    def get_vault(vault_id: str) -> MultiSigVault:
        if vault_id not in vaults:
            raise NotFound(f"Vault {vault_id} not found", vault_id=vault_id)
        return vaults[vault_id]

    def current_caller() -> AttestedCaller:
        token = request.headers.get(CALLER_HEADER)
        if not token:
            raise Unauthorized(f"Missing {CALLER_HEADER} header")
        return AttestedCaller.from_token(token)

    def payload_json() -> dict:
        return request.get_json(silent=True) or {}

    @app.errorhandler(CustodyError)
    def handle_custody_error(e: CustodyError):
        app.logger.info("Request rejected: %s %s", e.kind, e.message)
        body = e.to_dict()
        body['success'] = False
        return jsonify(body), _status_for(e)

    @app.errorhandler(KeyError)
    def handle_missing_field(e: KeyError):
        return jsonify({'success': False, 'error': 'BadRequest', 'message': f"Missing field {e}"}), 400

    @app.route('/api/challenge', methods=['POST'])
    def issue_challenge():
        """Start the caller attestation handshake"""
        data = payload_json()
        challenge = host.attestor.challenge(data['address'])
        return jsonify({
            'success': True,
            'challenge': challenge.hex(),
            'message': host.attestor.challenge_message(challenge).hex()
        })

    @app.route('/api/attest', methods=['POST'])
    def attest():
        """Exchange a signed challenge for a caller token"""
        data = payload_json()
        caller = host.attestor.attest(data['public_key'], data['signature'])
        return jsonify({'success': True, 'address': caller.address, 'token': caller.token()})

    @app.route('/api/vaults', methods=['POST'])
    def create_vault():
        """Create and initialize a new vault"""
        data = payload_json()
        vault = MultiSigVault.create(data['owners'], data['threshold'], host=host, config=config)
        vaults[vault.vault_id] = vault

        initial_balance = data.get('initial_balance', 0)
        if initial_balance:
            vault.receive(initial_balance)

        app.logger.debug("Created vault %s with owners %s", vault.vault_id, vault.owners)
        body = vault.to_dict()
        body['success'] = True
        return jsonify(body), 201

    @app.route('/api/vaults/<vault_id>')
    def get_vault_info(vault_id):
        return jsonify(get_vault(vault_id).to_dict())

    @app.route('/api/vaults/<vault_id>/deposit', methods=['POST'])
    def deposit(vault_id):
        """Bare accept-funds entry point"""
        vault = get_vault(vault_id)
        data = payload_json()
        caller = current_caller() if (CALLER_HEADER in request.headers or 'sender' in data) else None
        if caller is not None and 'sender' in data and str(data['sender']).lower() != caller.address:
            raise Unauthorized("Deposits can only be debited from the caller's own account",
                               sender=data['sender'], caller=caller.address)
        balance = vault.receive(data['amount'], caller)
        return jsonify({'success': True, 'balance': balance})

    @app.route('/api/vaults/<vault_id>/transactions', methods=['POST'])
    def submit_transaction(vault_id):
        vault = get_vault(vault_id)
        data = payload_json()
        try:
            payload = bytes.fromhex(data.get('payload', ''))
        except ValueError:
            return jsonify({'success': False, 'error': 'BadRequest', 'message': 'payload must be hex'}), 400

        transaction_id = vault.submit(data['target'], data['value'], payload, current_caller())
        return jsonify({'success': True, 'transaction_id': transaction_id}), 201

    @app.route('/api/vaults/<vault_id>/transactions')
    def list_transactions(vault_id):
        vault = get_vault(vault_id)
        pending = request.args.get('pending', 'true') == 'true'
        executed = request.args.get('executed', 'true') == 'true'
        ids = vault.transaction_ids(pending=pending, executed=executed)
        return jsonify({'transactions': [_transaction_view(vault, i) for i in ids]})

    @app.route('/api/vaults/<vault_id>/transactions/<int:transaction_id>')
    def get_transaction(vault_id, transaction_id):
        vault = get_vault(vault_id)
        return jsonify(_transaction_view(vault, transaction_id))

    @app.route('/api/vaults/<vault_id>/transactions/<int:transaction_id>/confirm', methods=['POST'])
    def confirm_transaction(vault_id, transaction_id):
        count = get_vault(vault_id).confirm(transaction_id, current_caller())
        return jsonify({'success': True, 'confirmations': count})

    @app.route('/api/vaults/<vault_id>/transactions/<int:transaction_id>/revoke', methods=['POST'])
    def revoke_confirmation(vault_id, transaction_id):
        count = get_vault(vault_id).revoke(transaction_id, current_caller())
        return jsonify({'success': True, 'confirmations': count})

    @app.route('/api/vaults/<vault_id>/transactions/<int:transaction_id>/execute', methods=['POST'])
    def execute_transaction(vault_id, transaction_id):
        result = get_vault(vault_id).execute(transaction_id, current_caller())
        body = result.to_dict()
        body['transaction_id'] = transaction_id
        return jsonify(body)

    @app.route('/api/vaults/<vault_id>/transactions/<int:transaction_id>/cancel', methods=['POST'])
    def cancel_transaction(vault_id, transaction_id):
        get_vault(vault_id).cancel(transaction_id, current_caller())
        return jsonify({'success': True})

    @app.route('/api/vaults/<vault_id>/threshold', methods=['POST'])
    def amend_threshold(vault_id):
        vault = get_vault(vault_id)
        previous = vault.amend_threshold(payload_json()['threshold'], current_caller())
        return jsonify({'success': True, 'previous': previous, 'threshold': vault.threshold})

    @app.route('/api/vaults/<vault_id>/events')
    def get_events(vault_id):
        vault = get_vault(vault_id)
        return jsonify({'events': [r.to_dict() for r in vault.events.records()]})

    return app


def _transaction_view(vault: MultiSigVault, transaction_id: int) -> dict:
    view = vault.transaction(transaction_id).to_dict()
    view['status'] = vault.status(transaction_id).value
    view['confirmations'] = vault.confirmations(transaction_id)
    return view


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 10000))
    create_app().run(
        host="0.0.0.0",
        port=port,
        debug=False
    )
