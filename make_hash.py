import sys
from getpass import getpass

from agendrj.services.user_service import hash_password

# Gera o hash para semear a conta master direto no banco:
#   INSERT INTO users (id, name, email, password_hash, role, cpf)
#   VALUES (gen_random_uuid(), 'Admin Master', 'admin@agendrj.com', '<hash>', 'master', '<cpf>');
pwd = sys.argv[1] if len(sys.argv) > 1 else getpass("Senha: ")
print(hash_password(pwd))
