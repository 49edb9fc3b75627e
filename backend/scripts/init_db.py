"""
Script para inicializar o banco de dados.
Cria todas as tabelas e, opcionalmente, concede uma faixa inicial.

Uso:
    python scripts/init_db.py
    python scripts/init_db.py --tipo corporate --entidade CORP001 --inicio 871026572 --fim 871027571 --admin admin
"""
import sys
import os
import argparse

# Adicionar o diretório raiz ao path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from consignacao.database import engine, SessionLocal
from consignacao.core.exceptions import ConsignacaoError
from consignacao.models import Base, TipoAtribuicao
from consignacao.services.faixa_service import faixa_service


def create_tables():
    """Criar todas as tabelas no banco"""
    print("[*] Criando tabelas...")
    Base.metadata.create_all(bind=engine)
    print("[+] Tabelas criadas com sucesso!")


def conceder_faixa_inicial(tipo: str, entidade: str, inicio: int, fim: int, admin: str):
    """Conceder a primeira faixa de uma entidade"""
    db = SessionLocal()
    try:
        atribuicao = faixa_service.conceder(
            db,
            tipo_atribuicao=TipoAtribuicao(tipo),
            entidade_id=entidade,
            numero_inicial=inicio,
            numero_final=fim,
            concedido_por=admin,
            observacoes="Faixa inicial"
        )
        print(f"[+] Faixa {atribuicao.codigo} concedida: {atribuicao.faixa_display}")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Inicializar banco de dados")
    parser.add_argument("--skip-tables", action="store_true", help="Pular criação de tabelas")
    parser.add_argument("--tipo", choices=[t.value for t in TipoAtribuicao], help="Tipo da entidade")
    parser.add_argument("--entidade", help="ID da entidade")
    parser.add_argument("--inicio", type=int, help="Número inicial da faixa")
    parser.add_argument("--fim", type=int, help="Número final da faixa")
    parser.add_argument("--admin", default="admin", help="Administrador que concede")

    args = parser.parse_args()

    print("=" * 50)
    print("INICIALIZAÇÃO DO BANCO DE DADOS")
    print("=" * 50)

    if not args.skip_tables:
        create_tables()

    if args.tipo:
        if not (args.entidade and args.inicio and args.fim):
            print("[ERRO] --tipo exige --entidade, --inicio e --fim")
            sys.exit(1)
        try:
            conceder_faixa_inicial(args.tipo, args.entidade, args.inicio, args.fim, args.admin)
        except ConsignacaoError as e:
            print(f"[ERRO] {e.mensagem}")
            sys.exit(1)

    print("=" * 50)
    print("[+] Inicialização concluída!")
    print("=" * 50)


if __name__ == "__main__":
    main()
