import argparse
import asyncio
import os
import sys

# Añade backend/ al PYTHONPATH para importar climadesk.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from climadesk.core.database import AsyncSessionLocal, engine
from climadesk.models import Base, FiscalVoucher


async def reset(vouchers: int, prefix: str):
    print("Conectando a la base de datos, borrando tablas...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        print("Tablas borradas. Creando tablas nuevas...")
        await conn.run_sync(Base.metadata.create_all)

    if vouchers:
        async with AsyncSessionLocal() as session:
            for n in range(1, vouchers + 1):
                session.add(FiscalVoucher(voucher_number=f"{prefix}{n:08d}", voucher_type=prefix))
            await session.commit()
        print(f"{vouchers} comprobantes fiscales creados ({prefix}00000001...)")

    await engine.dispose()
    print("Base de datos reiniciada")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Reinicia el esquema de ClimaDesk")
    parser.add_argument("--vouchers", type=int, default=0, help="NCF de prueba a crear")
    parser.add_argument("--prefix", default="B01", help="Serie de los NCF de prueba")
    args = parser.parse_args()
    asyncio.run(reset(args.vouchers, args.prefix))
