"""
Serviço de Geração de PDF de Faturas
"""
import io
from datetime import datetime
from decimal import Decimal
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from consignacao.models.fatura import Fatura, StatusFatura

# Altura minima livre antes de quebrar a pagina da tabela
MARGEM_INFERIOR = 160


def _moeda(valor) -> str:
    return f"Rs {Decimal(valor or 0):,.2f}"


class PDFService:
    """Serviço para geração do PDF de uma fatura"""

    def gerar_pdf_fatura(self, fatura: Fatura) -> bytes:
        """
        Gera o PDF da fatura com a lista de envios e o quadro de totais

        Returns:
            Bytes do PDF gerado
        """
        buffer = io.BytesIO()

        c = canvas.Canvas(buffer, pagesize=A4)
        c.setTitle(fatura.numero)
        width, height = A4

        self._draw_header(c, width, height, fatura)
        self._draw_info(c, width, height, fatura)
        y_pos = self._draw_itens_table(c, width, height, fatura)
        self._draw_totais(c, width, y_pos, fatura)
        self._draw_footer(c, width, fatura)

        c.save()
        buffer.seek(0)
        return buffer.getvalue()

    def _draw_header(self, c: canvas.Canvas, width: float, height: float, fatura: Fatura):
        """Desenha o cabeçalho do PDF"""
        c.setFillColor(colors.HexColor('#1d4ed8'))
        c.rect(0, height - 80, width, 80, fill=True, stroke=False)

        c.setFillColor(colors.white)
        c.setFont("Helvetica-Bold", 20)
        c.drawCentredString(width / 2, height - 40, "FATURA")

        c.setFont("Helvetica", 12)
        c.drawCentredString(width / 2, height - 60, fatura.numero)

        c.setFont("Helvetica", 9)
        c.setFillColor(colors.HexColor('#666666'))
        data_hoje = datetime.now().strftime('%d/%m/%Y às %H:%M')
        c.drawRightString(width - 20, height - 95, f"Emitido em: {data_hoje}")

    def _draw_info(self, c: canvas.Canvas, width: float, height: float, fatura: Fatura):
        """Entidade, período, vencimento e situação"""
        y = height - 110

        c.setStrokeColor(colors.HexColor('#e5e7eb'))
        c.setFillColor(colors.HexColor('#f9fafb'))
        c.roundRect(20, y - 55, width - 40, 55, 5, fill=True, stroke=True)

        linhas = [
            ("ENTIDADE:", f"{fatura.tipo_atribuicao.value} / {fatura.entidade_id}"),
            ("PERÍODO:", f"{fatura.data_inicio:%d/%m/%Y} a {fatura.data_fim:%d/%m/%Y}"),
            ("VENCIMENTO:", f"{fatura.data_vencimento:%d/%m/%Y}"),
        ]
        for i, (label, valor) in enumerate(linhas):
            c.setFillColor(colors.HexColor('#333333'))
            c.setFont("Helvetica-Bold", 10)
            c.drawString(30, y - 17 - i * 15, label)
            c.setFont("Helvetica", 10)
            c.drawString(110, y - 17 - i * 15, valor)

        pago = fatura.status == StatusFatura.PAID
        c.setFillColor(colors.HexColor('#059669') if pago else colors.HexColor('#b91c1c'))
        c.setFont("Helvetica-Bold", 12)
        c.drawRightString(width - 30, y - 20, "PAGA" if pago else "EM ABERTO")

    def _draw_table_header(self, c: canvas.Canvas, width: float, y: float):
        c.setFillColor(colors.HexColor('#3b82f6'))
        c.rect(20, y - 20, width - 40, 20, fill=True, stroke=False)

        c.setFillColor(colors.white)
        c.setFont("Helvetica-Bold", 8)
        c.drawString(25, y - 14, "#")
        c.drawString(45, y - 14, "Consignação")
        c.drawString(125, y - 14, "Data")
        c.drawRightString(215, y - 14, "Peso (kg)")
        c.drawRightString(280, y - 14, "Frete")
        c.drawRightString(330, y - 14, "AWB")
        c.drawRightString(390, y - 14, "Combust.")
        c.drawRightString(440, y - 14, "CGST")
        c.drawRightString(490, y - 14, "SGST")
        c.drawRightString(width - 25, y - 14, "Total")

    def _draw_itens_table(self, c: canvas.Canvas, width: float, height: float, fatura: Fatura) -> float:
        """Desenha a tabela de envios, quebrando página quando necessário"""
        y = height - 190

        c.setFillColor(colors.HexColor('#059669'))
        c.setFont("Helvetica-Bold", 12)
        c.drawString(20, y, "ENVIOS FATURADOS")

        y -= 10
        self._draw_table_header(c, width, y)
        y -= 25

        for i, item in enumerate(fatura.itens, 1):
            if y < MARGEM_INFERIOR:
                c.showPage()
                y = height - 40
                self._draw_table_header(c, width, y)
                y -= 25

            if i % 2 == 0:
                c.setFillColor(colors.HexColor('#f3f4f6'))
                c.rect(20, y - 5, width - 40, 16, fill=True, stroke=False)

            c.setFillColor(colors.HexColor('#333333'))
            c.setFont("Helvetica", 8)
            c.drawString(25, y, str(i))
            c.drawString(45, y, str(item.numero_consignacao))
            c.drawString(125, y, f"{item.data_reserva:%d/%m/%Y}")
            c.drawRightString(215, y, f"{Decimal(item.peso or 0):.3f}")
            c.drawRightString(280, y, f"{Decimal(item.valor_frete or 0):,.2f}")
            c.drawRightString(330, y, f"{Decimal(item.taxa_awb or 0):,.2f}")
            c.drawRightString(390, y, f"{Decimal(item.valor_combustivel or 0):,.2f}")
            c.drawRightString(440, y, f"{Decimal(item.valor_cgst or 0):,.2f}")
            c.drawRightString(490, y, f"{Decimal(item.valor_sgst or 0):,.2f}")
            c.drawRightString(width - 25, y, f"{Decimal(item.valor_total or 0):,.2f}")

            y -= 16

        return y - 20

    def _draw_totais(self, c: canvas.Canvas, width: float, y_start: float, fatura: Fatura):
        """Quadro de totais no canto direito"""
        totais = [
            ("Subtotal (frete)", fatura.subtotal),
            ("Taxa AWB", fatura.total_awb),
            (f"Combustível ({float(fatura.percentual_combustivel):g}%)", fatura.total_combustivel),
            ("CGST", fatura.total_cgst),
            ("SGST", fatura.total_sgst),
        ]

        altura = 20 + len(totais) * 15 + 25
        if y_start - altura < 70:
            c.showPage()
            _, height = A4
            y_start = height - 40

        x = width - 240
        c.setStrokeColor(colors.HexColor('#10b981'))
        c.setFillColor(colors.HexColor('#ecfdf5'))
        c.roundRect(x, y_start - altura, 220, altura, 5, fill=True, stroke=True)

        y = y_start - 18
        c.setFont("Helvetica", 9)
        for label, valor in totais:
            c.setFillColor(colors.HexColor('#333333'))
            c.drawString(x + 10, y, label)
            c.drawRightString(width - 30, y, _moeda(valor))
            y -= 15

        c.setFillColor(colors.HexColor('#065f46'))
        c.setFont("Helvetica-Bold", 11)
        c.drawString(x + 10, y - 5, "TOTAL GERAL")
        c.drawRightString(width - 30, y - 5, _moeda(fatura.total_geral))

    def _draw_footer(self, c: canvas.Canvas, width: float, fatura: Fatura):
        """Desenha o rodapé do PDF"""
        c.setFillColor(colors.HexColor('#666666'))
        c.setFont("Helvetica", 8)
        c.drawCentredString(width / 2, 40, "Controle de Numeração de Consignações")
        c.drawCentredString(width / 2, 28, f"Referência: {fatura.numero} ({len(fatura.itens)} envio(s))")


# Instância singleton
pdf_service = PDFService()
