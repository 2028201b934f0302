# ui/components package
